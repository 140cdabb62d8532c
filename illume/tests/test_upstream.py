import io

import httpx
import pytest

from illume.adapters.upstream import build_client, dump_request, stream_lines
from illume.core.errors import TransportError
from illume.core.models import PreparedRequest


def _request() -> PreparedRequest:
    return PreparedRequest(
        url="http://upstream.test/v1/chat/completions",
        headers={"content-type": "application/json", "x-trace": "1"},
        body=b'{"stream": true}',
    )


def test_stream_lines_sends_request_and_yields_lines():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["trace"] = request.headers["x-trace"]
        seen["body"] = request.content
        return httpx.Response(200, content=b"data: a\n\ndata: b\n")

    with build_client(httpx.MockTransport(handler)) as client:
        with stream_lines(client, _request()) as lines:
            received = [line for line in lines if line]

    assert received == ["data: a", "data: b"]
    assert seen == {
        "method": "POST",
        "url": "http://upstream.test/v1/chat/completions",
        "trace": "1",
        "body": b'{"stream": true}',
    }


def test_non_200_raises_with_status_and_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="rate limited")

    with build_client(httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as excinfo:
            with stream_lines(client, _request()):
                pass

    assert excinfo.value.status == 429
    assert "429" in str(excinfo.value)
    assert "rate limited" in str(excinfo.value)


def test_other_success_codes_are_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, text="created")

    with build_client(httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as excinfo:
            with stream_lines(client, _request()):
                pass
    assert str(excinfo.value) == "HTTP 201: created"


def test_connection_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with build_client(httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as excinfo:
            with stream_lines(client, _request()):
                pass
    assert excinfo.value.status == 0
    assert "upstream_unreachable" in str(excinfo.value)


def test_dump_request_writes_wire_format():
    out = io.StringIO()
    dump_request(_request(), out)
    assert out.getvalue() == (
        "\n\nPOST http://upstream.test/v1/chat/completions HTTP/1.1\n"
        "content-type: application/json\n"
        "x-trace: 1\n"
        '\n{"stream": true}\n'
    )
