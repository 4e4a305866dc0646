"""HTTP reachability probe."""

from __future__ import annotations

import asyncio
import logging
import socket
import ssl

import httpx

from ..config import Config
from ..core.errors import ReachError, ReachErrorKind

logger = logging.getLogger(__name__)

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "name resolution",
)
_TLS_MARKERS = ("ssl", "certificate", "tls")


def _exception_chain(exc: BaseException):
    seen = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_connect_error(exc: BaseException) -> ReachErrorKind:
    """Map a transport failure to refused / DNS / TLS."""
    for err in _exception_chain(exc):
        if isinstance(err, socket.gaierror):
            return ReachErrorKind.DNS_FAILURE
        if isinstance(err, ssl.SSLError):
            return ReachErrorKind.TLS_FAILURE
    text = " ".join(str(err) for err in _exception_chain(exc)).lower()
    if any(marker in text for marker in _DNS_MARKERS):
        return ReachErrorKind.DNS_FAILURE
    if any(marker in text for marker in _TLS_MARKERS):
        return ReachErrorKind.TLS_FAILURE
    return ReachErrorKind.CONNECTION_REFUSED


_KIND_LABELS = {
    ReachErrorKind.CONNECTION_REFUSED: "connection refused",
    ReachErrorKind.TIMEOUT: "timed out",
    ReachErrorKind.DNS_FAILURE: "host name could not be resolved",
    ReachErrorKind.TLS_FAILURE: "TLS handshake failed",
    ReachErrorKind.PROTOCOL_ERROR: "invalid HTTP response",
    ReachErrorKind.SERVER_ERROR: "server error",
}


def reach_error(kind: ReachErrorKind, url: str, detail: str) -> ReachError:
    return ReachError(
        kind, url, f"Could not reach server at {url} ({_KIND_LABELS[kind]}): {detail}"
    )


class HttpReachabilityProbe:
    """One GET against the app URL; any 2xx-4xx answer means reachable."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    async def probe(self, url: str, timeout: float = Config.PROBE_TIMEOUT) -> None:
        logger.debug("Probing %s (timeout %.1fs)", url, timeout)
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                max_redirects=Config.PROBE_MAX_REDIRECTS,
                transport=self._transport,
            ) as client:
                # Per-phase httpx timeouts do not bound a slow body or a redirect chain
                response = await asyncio.wait_for(client.get(url), timeout)
        except asyncio.TimeoutError as e:
            raise reach_error(
                ReachErrorKind.TIMEOUT, url, f"no complete response within {timeout:.1f}s"
            ) from e
        except httpx.TimeoutException as e:
            raise reach_error(ReachErrorKind.TIMEOUT, url, str(e) or "no response") from e
        except httpx.ConnectError as e:
            raise reach_error(classify_connect_error(e), url, str(e)) from e
        except (httpx.TooManyRedirects, httpx.RemoteProtocolError, httpx.DecodingError) as e:
            raise reach_error(ReachErrorKind.PROTOCOL_ERROR, url, str(e)) from e
        except httpx.TransportError as e:
            raise reach_error(classify_connect_error(e), url, str(e)) from e

        if response.status_code >= 500:
            raise reach_error(
                ReachErrorKind.SERVER_ERROR,
                url,
                f"Server responded with status {response.status_code} when requesting {url}",
            )
        logger.info("Server at %s answered with %s", url, response.status_code)
