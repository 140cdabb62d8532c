"""
HTTP transport for prepared requests.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, TextIO

import httpx

from illume.config.settings import settings
from illume.core.errors import TransportError
from illume.core.models import PreparedRequest
from illume.util.logger import logger


def _upstream_http_timeout() -> httpx.Timeout:
    timeout = float(settings.timeout_seconds)
    connect = float(settings.connect_timeout_seconds)
    return httpx.Timeout(connect=connect, read=timeout, write=timeout, pool=timeout)


def build_client(transport: httpx.BaseTransport | None = None) -> httpx.Client:
    return httpx.Client(timeout=_upstream_http_timeout(), transport=transport)


def _safe_error_detail(body: bytes) -> str:
    return body.decode("utf-8", errors="replace").strip()


@contextmanager
def stream_lines(client: httpx.Client, request: PreparedRequest) -> Iterator[Iterator[str]]:
    """Send the request and yield an iterator over the response lines.

    The response is closed when the block exits, including when the caller
    stops reading at the end sentinel.
    """
    logger.debug("forward_stream start url=%s payload_bytes=%d", request.url, len(request.body))
    try:
        with client.stream(
            request.method,
            request.url,
            content=request.body,
            headers=request.headers,
        ) as resp:
            logger.debug("forward_stream connected url=%s status=%s", request.url, resp.status_code)
            if resp.status_code != 200:
                detail = _safe_error_detail(resp.read())
                raise TransportError(resp.status_code, detail)
            yield resp.iter_lines()
    except httpx.HTTPError as exc:
        detail = (str(exc) or "").strip() or "connection_failed_or_timeout"
        logger.warning("forward_stream http_error url=%s error=%s", request.url, detail)
        raise TransportError(0, f"upstream_unreachable: {detail}") from exc


def dump_request(request: PreparedRequest, out: TextIO) -> None:
    """Write the request as it would go over the wire, without sending it."""
    out.write(f"\n\n{request.method} {request.url} HTTP/1.1\n")
    for key, value in request.headers.items():
        out.write(f"{key}: {value}\n")
    out.write(f"\n{request.body.decode('utf-8')}\n")
    out.flush()
