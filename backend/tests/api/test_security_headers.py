"""Security Header Injector — baseline headers on every response, whatever the status."""

import pytest

from gateway.middleware.security_headers import SECURITY_HEADERS
from tests.support import FOREIGN_ORIGIN


@pytest.mark.parametrize(
    "method, path, headers, expected_status",
    [
        ("GET", "/api/items/1", {}, 200),
        ("GET", "/nope", {}, 404),
        ("PUT", "/api/items/1", {}, 500),
        ("GET", "/api/items/1", {"Origin": FOREIGN_ORIGIN}, 403),
        ("OPTIONS", "/api/items/1", {}, 204),
        ("GET", "/metrics", {}, 200),
    ],
)
async def test_security_headers_on_every_response(client, method, path, headers, expected_status):
    res = await client.request(method, path, headers=headers)
    assert res.status_code == expected_status
    for name, value in SECURITY_HEADERS.items():
        assert res.headers[name] == value


async def test_baseline_includes_sniffing_and_framing_protection(client):
    res = await client.get("/api/items/1")
    assert res.headers["x-content-type-options"] == "nosniff"
    assert res.headers["x-frame-options"] == "SAMEORIGIN"
