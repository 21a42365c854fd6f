"""Test support — fake collaborators and the items route group shared by test modules."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from gateway.core.errors import ApplicationError
from gateway.core.request_context import RequestContext, get_request_context

ALLOWED_ORIGIN = "https://app.example.com"
FOREIGN_ORIGIN = "https://evil.example.net"


class FakeDatabase:
    """Stands in for DatabaseSessionManager's ping/dispose contract."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.pings = 0
        self.disposed = False

    async def ping(self) -> None:
        self.pings += 1
        if self.error is not None:
            raise self.error

    async def dispose(self) -> None:
        self.disposed = True


class Widget(BaseModel):
    name: str
    quantity: int = 1


def build_items_router(calls: list[str]) -> APIRouter:
    """Route group whose handlers append to ``calls`` when they actually run."""
    router = APIRouter(prefix="/items", tags=["items"])

    @router.get("/{item_id}")
    async def get_item(item_id: str):
        calls.append(f"get:{item_id}")
        return {"id": item_id}

    @router.post("")
    async def create_item(ctx: RequestContext = Depends(get_request_context)):
        calls.append("create")
        return {"received": ctx.body}

    @router.post("/typed")
    async def create_typed(widget: Widget):
        calls.append("typed")
        return widget

    @router.delete("/{item_id}")
    async def delete_item(item_id: str):
        calls.append(f"delete:{item_id}")
        raise ApplicationError(403, "nope")

    @router.put("/{item_id}")
    async def replace_item(item_id: str):
        calls.append(f"put:{item_id}")
        raise RuntimeError("connection string postgres://admin:hunter2@db")

    @router.patch("/{item_id}")
    async def patch_item(item_id: str):
        calls.append(f"patch:{item_id}")
        raise HTTPException(status_code=409, detail="conflict")

    @router.get("")
    async def list_items(limit: int):
        calls.append("list")
        return {"limit": limit}

    return router
