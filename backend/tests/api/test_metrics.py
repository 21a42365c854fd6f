"""Metrics Instrumentor — exactly one observation per request, exposed at /metrics.

Tests cover:
    - N requests to a route produce a counter of N for its template labels
    - Requests ended by origin denial, decode failure, 404 and handler faults are counted once
    - The /metrics endpoint counts its own invocations
    - Exposition output is Prometheus text format
    - Labels come from RouteTemplateIndex; unknown verbs collapse to OTHER
"""

import pytest
from fastapi import APIRouter
from httpx import ASGITransport, AsyncClient
from prometheus_client.parser import text_string_to_metric_families

from gateway.api.router import RouteTemplateIndex
from gateway.middleware.metrics import MetricsMiddleware
from tests.support import FOREIGN_ORIGIN


def _requests_total(metrics, method, route, status_code):
    return metrics.registry.get_sample_value(
        "http_requests_total",
        {"method": method, "route": route, "status_code": str(status_code)},
    )


def _scraped_counter(text, method, route, status_code):
    for family in text_string_to_metric_families(text):
        if family.name != "http_requests":
            continue
        for sample in family.samples:
            if sample.name == "http_requests_total" and sample.labels == {
                "method": method, "route": route, "status_code": str(status_code),
            }:
                return sample.value
    return None


async def test_counter_matches_request_count_per_template(client, metrics):
    for item_id in ("1", "2", "3", "4", "5"):
        await client.get(f"/api/items/{item_id}")

    res = await client.get("/metrics")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/plain")
    assert _scraped_counter(res.text, "GET", "/api/items/{item_id}", 200) == 5.0


async def test_metrics_endpoint_counts_itself(client, metrics):
    await client.get("/metrics")
    res = await client.get("/metrics")
    assert _scraped_counter(res.text, "GET", "/metrics", 200) == 1.0
    assert _requests_total(metrics, "GET", "/metrics", 200) == 2.0


async def test_denied_origin_counted_once(client, metrics):
    await client.get("/api/items/1", headers={"Origin": FOREIGN_ORIGIN})
    assert _requests_total(metrics, "GET", "/api/items/{item_id}", 403) == 1.0


async def test_decode_failure_counted_once(client, metrics):
    await client.post(
        "/api/items", content=b"{", headers={"Content-Type": "application/json"},
    )
    assert _requests_total(metrics, "POST", "/api/items", 400) == 1.0


async def test_handler_fault_counted_once(client, metrics):
    await client.put("/api/items/1")
    assert _requests_total(metrics, "PUT", "/api/items/{item_id}", 500) == 1.0


async def test_unmatched_route_labelled_unmatched(client, metrics):
    await client.get("/no/such/place")
    await client.get("/another/missing/path")
    assert _requests_total(metrics, "GET", "unmatched", 404) == 2.0


async def test_preflight_without_options_route_labelled_unmatched(client, metrics):
    await client.options("/api/items/3")
    assert _requests_total(metrics, "OPTIONS", "unmatched", 204) == 1.0


async def test_method_mismatch_labelled_unmatched(client, metrics):
    await client.request("TRACE", "/health")
    assert _requests_total(metrics, "TRACE", "unmatched", 404) == 1.0
    assert _requests_total(metrics, "TRACE", "/health", 404) is None


async def test_duration_histogram_observed(client, metrics):
    await client.get("/health")
    count = metrics.registry.get_sample_value(
        "http_request_duration_seconds_count",
        {"method": "GET", "route": "/health", "status_code": "200"},
    )
    assert count == 1.0


async def test_counters_are_monotonic_across_scrapes(client):
    await client.get("/api/items/1")
    first = _scraped_counter((await client.get("/metrics")).text, "GET", "/api/items/{item_id}", 200)
    await client.get("/api/items/2")
    second = _scraped_counter((await client.get("/metrics")).text, "GET", "/api/items/{item_id}", 200)
    assert (first, second) == (1.0, 2.0)


async def test_unknown_methods_share_one_series(client, metrics):
    for method in ("FOO1", "FOO2", "PROPFIND"):
        await client.request(method, "/api/items/1")
    assert _requests_total(metrics, "OTHER", "unmatched", 404) == 3.0
    assert _requests_total(metrics, "FOO1", "unmatched", 404) is None


async def test_documentation_routes_have_templates(client, metrics):
    await client.get("/documentation/openapi.json")
    assert _requests_total(metrics, "GET", "/documentation/openapi.json", 200) == 1.0


# ─── RouteTemplateIndex and the middleware on a bare ASGI app ───


def test_index_resolves_first_matching_template():
    index = RouteTemplateIndex()
    index.add("/api/items/typed", ["POST"])
    index.add("/api/items/{item_id}", ["GET"])
    index.add("/files/{rest:path}")

    assert index.resolve("POST", "/api/items/typed") == "/api/items/typed"
    assert index.resolve("GET", "/api/items/typed") == "/api/items/{item_id}"
    assert index.resolve("HEAD", "/api/items/9") == "/api/items/{item_id}"
    assert index.resolve("DELETE", "/api/items/9") is None
    assert index.resolve("PATCH", "/files/a/b/c") == "/files/{rest}"
    assert index.resolve("GET", "/elsewhere") is None


def test_index_skips_routes_without_a_path():
    router = APIRouter(prefix="/things")

    @router.get("/{thing_id}")
    async def get_thing(thing_id: str):
        return {}

    router.routes.append(object())
    index = RouteTemplateIndex()
    index.add_router(router, prefix="/api")
    assert len(index) == 1
    assert index.resolve("GET", "/api/things/1") == "/api/things/{thing_id}"


async def test_middleware_labels_without_reading_the_route_table(metrics):
    async def bare_app(scope, receive, send):
        await send({"type": "http.response.start", "status": 202, "headers": []})
        await send({"type": "http.response.body", "body": b""})

    index = RouteTemplateIndex()
    index.add("/jobs/{job_id}", ["POST"])
    app = MetricsMiddleware(bare_app, metrics=metrics, templates=index)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        res = await c.post("/jobs/42")

    assert res.status_code == 202
    assert _requests_total(metrics, "POST", "/jobs/{job_id}", 202) == 1.0


async def test_middleware_records_500_when_app_raises(metrics):
    async def failing_app(scope, receive, send):
        raise RuntimeError("boom")

    app = MetricsMiddleware(failing_app, metrics=metrics, templates=RouteTemplateIndex())
    with pytest.raises(RuntimeError):
        await app(
            {"type": "http", "method": "GET", "path": "/x", "headers": []},
            None, None,
        )
    assert _requests_total(metrics, "GET", "unmatched", 500) == 1.0
