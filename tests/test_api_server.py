from fastapi.testclient import TestClient

from mcpforge.api.rpc.service import McpService
from mcpforge.api.server import create_app
from mcpforge.config.schema import Config


def _app(trust_client_id_header=False, **priority_limits):
    config = Config()
    config.server.trust_client_id_header = trust_client_id_header
    config.limits.priority_limits.update(priority_limits)
    service = McpService(config)

    @service.method("echo", cacheable=True)
    def _echo(params, _ctx):
        return params

    @service.method("ratio")
    def _ratio(params, _ctx):
        return {"ratio": float(params["v"])}

    return create_app(service=service), service


def _req(req_id="1", method="echo", **metadata):
    req = {"jsonrpc": "2.0", "id": req_id, "method": method, "params": {"v": req_id}}
    if metadata:
        req["metadata"] = metadata
    return req


def test_single_request_and_cache_over_http():
    app, _ = _app()
    with TestClient(app) as client:
        first = client.post("/mcp", json=_req())
        second = client.post("/mcp", json=_req())
    assert first.status_code == 200
    assert first.json()["result"] == {"v": "1"}
    assert second.json()["metadata"]["cacheHit"] is True


def test_invalid_json_is_parse_error():
    app, _ = _app()
    with TestClient(app) as client:
        resp = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32700
    assert resp.json()["id"] is None


def test_validation_error_is_400():
    app, _ = _app()
    with TestClient(app) as client:
        resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": "x"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32600


def test_rate_limit_is_429_with_retry_after_per_client():
    app, _ = _app(trust_client_id_header=True, low=1)
    with TestClient(app) as client:
        ok = client.post("/mcp", json=_req("a", priority="low"), headers={"X-Client-Id": "alice"})
        limited = client.post("/mcp", json=_req("b", priority="low"), headers={"X-Client-Id": "alice"})
        other = client.post("/mcp", json=_req("c", priority="low"), headers={"X-Client-Id": "bob"})
    assert ok.status_code == 200
    assert limited.status_code == 429
    assert 1 <= int(limited.headers["Retry-After"]) <= 60
    assert other.status_code == 200


def test_batch_endpoints():
    app, _ = _app()
    with TestClient(app) as client:
        batch = client.post("/mcp", json=[_req("1"), _req("2", priority="high")])
        only_batch = client.post("/mcp/batch", json=_req("3"))
    assert batch.status_code == 200
    assert [r["id"] for r in batch.json()] == ["1", "2"]
    assert only_batch.status_code == 400
    assert only_batch.json()["id"] == "batch"


def test_introspection_endpoints_and_readiness():
    app, service = _app()
    client = TestClient(app)
    assert client.get("/ready").status_code == 503
    with TestClient(app) as live:
        assert live.get("/ready").json()["ready"] is True
        assert live.get("/health").json()["status"] == "healthy"
        assert live.get("/mcp/protocol").json()["jsonrpc"] == "2.0"
        assert any(m["method"] == "echo" for m in live.get("/mcp/capabilities").json()["methods"])
        assert live.get("/mcp/batch-stats").json()["activeBatches"] == 0
    assert service.ready is False


def test_unhealthy_probe_makes_health_503():
    app, service = _app()
    service.add_health_probe("db", lambda: False)
    with TestClient(app) as client:
        resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "degraded"


def test_rotating_client_id_header_is_ignored_by_default():
    app, _ = _app(low=2)
    with TestClient(app) as client:
        statuses = [
            client.post("/mcp", json=_req(str(i), priority="low"), headers={"X-Client-Id": f"c{i}"}).status_code
            for i in range(4)
        ]
    assert statuses == [200, 200, 429, 429]


def test_non_standard_json_constants_are_parse_errors():
    app, service = _app()
    with TestClient(app) as client:
        for token in ("NaN", "Infinity", "-Infinity"):
            body = '{"jsonrpc":"2.0","id":%s,"method":"echo","params":{}}' % token
            resp = client.post("/mcp", content=body.encode(), headers={"Content-Type": "application/json"})
            assert resp.status_code == 400
            assert resp.json()["error"]["code"] == -32700
            assert resp.json()["id"] is None
    assert service.performance.totals()["totalRequests"] == 0


def test_unencodable_result_still_returns_an_envelope():
    app, _ = _app()
    with TestClient(app) as client:
        resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": "n1", "method": "ratio", "params": {"v": "nan"}})
    assert resp.status_code == 500
    body = resp.json()
    assert body["id"] == "n1"
    assert body["error"]["code"] == -32603
    assert body["error"]["retryable"] is False
    assert "metadata" in body


def test_priority_header_fills_missing_metadata_priority():
    app, _ = _app(low=1)
    with TestClient(app) as client:
        first = client.post("/mcp", json=_req("a"), headers={"X-Priority": "low"})
        second = client.post("/mcp", json=_req("b"), headers={"X-Priority": "low"})
        explicit = [
            client.post(
                "/mcp",
                json={"jsonrpc": "2.0", "id": f"r{i}", "method": "ratio", "params": {"v": i}, "metadata": {"priority": "high"}},
                headers={"X-Priority": "low"},
            ).status_code
            for i in range(3)
        ]
    assert first.status_code == 200
    assert second.status_code == 429
    assert explicit == [200, 200, 200]


def test_unknown_priority_header_is_ignored():
    app, _ = _app(low=1)
    with TestClient(app) as client:
        statuses = [
            client.post("/mcp", json=_req(str(i)), headers={"X-Priority": "urgent"}).status_code for i in range(3)
        ]
    assert statuses == [200, 200, 200]
