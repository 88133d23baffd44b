from mcpforge.api.http.error_helpers import http_status_for_code, retry_after_header, status_and_headers


def _err(code, data=None):
    return {"jsonrpc": "2.0", "id": "1", "error": {"code": code, "message": "x", "data": data}, "metadata": {}}


def test_http_status_for_code():
    assert http_status_for_code(None) == 200
    for code in (-32700, -32600, -32601, -32602):
        assert http_status_for_code(code) == 400
    assert http_status_for_code(-32000) == 429
    assert http_status_for_code(-32001) == 503
    assert http_status_for_code(-32603) == 500


def test_retry_after_from_reset_time():
    resp = _err(-32000, {"resetTime": 1_060_000, "retryAfter": 5})
    assert retry_after_header(resp, now=1000.2) == "60"


def test_retry_after_from_retry_after_field():
    assert retry_after_header(_err(-32001, {"retryAfter": 30})) == "30"
    assert retry_after_header(_err(-32603, {"retryAfter": 30})) is None


def test_status_and_headers():
    assert status_and_headers([_err(-32000)]) == (200, {})
    assert status_and_headers({"jsonrpc": "2.0", "id": 1, "result": {}}) == (200, {})
    status, headers = status_and_headers(_err(-32001, {"retryAfter": 30}))
    assert status == 503
    assert headers == {"Retry-After": "30"}
