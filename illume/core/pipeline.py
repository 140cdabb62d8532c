"""Document in, generated text out."""

from __future__ import annotations

import os
from time import monotonic
from typing import Mapping, TextIO

import httpx

from illume.adapters.stream_utils import StreamNormalizer
from illume.adapters.upstream import build_client, dump_request, stream_lines
from illume.config.settings import Settings, settings as default_settings
from illume.core.assembler import assemble
from illume.core.context import MODE_CHAT, InterpretContext, RequestState
from illume.core.interpreter import interpret
from illume.core.models import PreparedRequest
from illume.observability.logging import log_event
from illume.profiles.profile_store import ProfileStore, split_search_path


DOCUMENT_NAME = "<stdin>"


class Pipeline:
    def __init__(
        self,
        config: Settings | None = None,
        profiles: ProfileStore | None = None,
        environ: Mapping[str, str] | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config or default_settings
        self.profiles = profiles or ProfileStore(search_dirs=split_search_path(self.config.profile_path))
        self.environ = os.environ if environ is None else environ
        self.client = client

    def prepare(self, text: str, name: str = DOCUMENT_NAME) -> tuple[RequestState, PreparedRequest]:
        state = RequestState(token=self.config.token)
        ctx = InterpretContext(state=state, profiles=self.profiles, environ=self.environ)
        interpret(ctx, name, text)
        request = assemble(ctx, self.config.profile)
        return state, request

    def run(self, text: str, out: TextIO, name: str = DOCUMENT_NAME) -> None:
        state, request = self.prepare(text, name)
        if state.debug:
            dump_request(request, out)
            return

        log_event("request_dispatch", url=request.url, mode=state.mode, profile=state.profile)
        client = self.client or build_client()
        try:
            started = monotonic()
            with stream_lines(client, request) as lines:
                if state.mode == MODE_CHAT:
                    out.write("\n\n!assistant\n\n")
                    out.flush()
                events = StreamNormalizer(out).run(lines)
            elapsed = monotonic() - started
        finally:
            if self.client is None:
                client.close()

        log_event("stream_complete", events=events, seconds=round(elapsed, 3))
        if state.stats:
            out.write(format_stats(events, elapsed))
            out.flush()


def format_stats(events: int, elapsed: float) -> str:
    rate = events / elapsed if elapsed > 0 else 0.0
    return f"\n\n!note {events} events in {elapsed:.2f}s ({rate:.1f} events/s)\n"
