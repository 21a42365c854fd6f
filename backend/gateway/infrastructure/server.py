"""Gateway Server — uvicorn server that reports when its sockets are bound.

Invariants:
    - The ASGI lifespan (bootstrap included) completes before sockets are bound
    - mark_listening() is called at most once, only after a successful bind
"""

import socket

import uvicorn

from gateway.core.startup_sequence import StartupSequencer


class GatewayServer(uvicorn.Server):
    def __init__(self, config: uvicorn.Config, sequencer: StartupSequencer, mode: str):
        super().__init__(config)
        self.sequencer = sequencer
        self.mode = mode

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        await super().startup(sockets=sockets)
        if self.started and not self.should_exit:
            self.sequencer.mark_listening(self.config.port, self.mode)
