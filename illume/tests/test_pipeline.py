import io
import json

import httpx

from illume.config.settings import Settings
from illume.core.pipeline import Pipeline, format_stats


def _pipeline(make_store, handler, profiles: dict | None = None, **overrides) -> Pipeline:
    config = Settings(profile="local", token="", **overrides)
    store = make_store(profiles or {"local": ["!api http://upstream.test/v1"]})
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return Pipeline(config=config, profiles=store, environ={}, client=client)


def _sse(*frames: str) -> bytes:
    return "".join(f"data: {frame}\n\n" for frame in frames).encode("utf-8")


def test_chat_round_trip(make_store):
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, content=_sse(
            '{"choices":[{"delta":{"content":"He"}}]}',
            '{"choices":[{"delta":{"content":"llo"}}]}',
            "[DONE]",
        ))

    out = io.StringIO()
    _pipeline(make_store, handler).run("!user\nHi\n", out)

    assert out.getvalue() == "\n\n!assistant\n\nHello"
    assert captured["url"] == "http://upstream.test/v1/chat/completions"
    assert captured["body"]["messages"] == [{"role": "user", "content": "Hi"}]
    assert captured["body"]["stream"] is True


def test_completion_output_has_no_role_header(make_store):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse('{"content":" there"}', "[DONE]"))

    out = io.StringIO()
    _pipeline(make_store, handler).run("!completion\nHello\n", out)
    assert out.getvalue() == " there"


def test_debug_dumps_instead_of_sending(make_store):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request must not be sent in debug mode")

    out = io.StringIO()
    _pipeline(make_store, handler).run("!debug\n!user\nHi\n", out)
    text = out.getvalue()
    assert text.startswith("\n\nPOST http://upstream.test/v1/chat/completions HTTP/1.1\n")
    assert '"messages": [{"role": "user", "content": "Hi"}]' in text


def test_stats_note_is_appended(make_store, monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse('{"content":"a"}', '{"content":"b"}'))

    ticks = iter([10.0, 12.0])
    monkeypatch.setattr("illume.core.pipeline.monotonic", lambda: next(ticks))

    out = io.StringIO()
    _pipeline(make_store, handler).run("!stats\n!completion\nx\n", out)
    assert out.getvalue() == "ab\n\n!note 2 events in 2.00s (1.0 events/s)\n"


def test_settings_token_is_sent(make_store):
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers.get("authorization")
        return httpx.Response(200, content=_sse("[DONE]"))

    pipeline = _pipeline(make_store, handler)
    pipeline.config = Settings(profile="local", token="sk-test")
    pipeline.run("!user\nHi\n", io.StringIO())
    assert captured["auth"] == "Bearer sk-test"


def test_format_stats_handles_zero_elapsed():
    assert format_stats(0, 0.0) == "\n\n!note 0 events in 0.00s (0.0 events/s)\n"
