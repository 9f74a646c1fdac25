"""
Reachability probers.

A probe makes exactly one bounded-time attempt to reach a URL. The
network timeout of the underlying client and an outer asyncio deadline
are both applied, so a probe returns within its timeout even if one of
them fails to fire. Probers never raise for network conditions or bad
input; everything is reported through ProbeResult.

Certificate verification is disabled on purpose: a successful probe
only means a TLS handshake (tcp mode) or an HTTP response (http mode)
was obtained. It says nothing about whether the certificate or the
origin can be trusted.
"""

import asyncio
import ssl
import time
from abc import ABC, abstractmethod
from contextlib import suppress
from typing import Optional

import httpx

from route_monitor.errors import ProbeConnectionError, ProbeTimeoutError
from route_monitor.probe.types import ProbeMode, ProbeOutcome, ProbeResult

DEFAULT_PORTS = {"http": 80, "https": 443}
DEFAULT_MAX_BODY_BYTES = 65536
MAX_LABEL_LENGTH = 63


class InvalidProbeTarget(ValueError):
    """The URL cannot be probed (unparseable, unsupported scheme, no host)."""

    pass


def parse_target(url: str) -> httpx.URL:
    """
    Parse and validate a probe URL.

    Raises:
        InvalidProbeTarget: If the URL cannot be probed
    """
    try:
        target = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidProbeTarget(str(e)) from e
    if target.scheme not in DEFAULT_PORTS:
        raise InvalidProbeTarget(f"unsupported scheme {target.scheme!r}")
    if not target.host:
        raise InvalidProbeTarget("missing host")
    # IPv6 literals have no DNS labels
    if ":" not in target.host:
        for label in target.host.rstrip(".").split("."):
            if not label or len(label) > MAX_LABEL_LENGTH:
                raise InvalidProbeTarget(f"invalid host {target.host!r}")
    return target


def insecure_ssl_context() -> ssl.SSLContext:
    """TLS context that skips certificate and hostname verification."""
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class Prober(ABC):
    """
    Abstract interface for reachability probes.

    Implementations:
    - HTTPProber: full HTTP exchange
    - TCPProber: transport-level connect
    """

    @abstractmethod
    async def probe(self, url: str, timeout: float) -> ProbeResult:
        """
        Check whether url is reachable within timeout seconds.

        Args:
            url: Target URL (http or https)
            timeout: Upper bound for the whole probe in seconds

        Returns:
            ProbeResult; UNKNOWN for malformed input, FAILURE for
            timeouts and connection errors
        """
        pass

    async def aclose(self) -> None:
        """Release any resources held by the prober."""
        pass

    @staticmethod
    def _result(
        outcome: ProbeOutcome,
        started: float,
        detail: str,
        url: str,
        error: Optional[Exception] = None,
    ) -> ProbeResult:
        return ProbeResult(
            outcome=outcome,
            latency=time.perf_counter() - started,
            detail=detail,
            url=url,
            error=error,
        )

    def _failure(self, started: float, error: Exception, url: str) -> ProbeResult:
        return self._result(ProbeOutcome.FAILURE, started, str(error), url, error)


class HTTPProber(Prober):
    """
    Probes with a single HTTP GET and drains up to max_body_bytes of the body.

    Any HTTP response, whatever its status code, counts as reachable.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ):
        """
        Initialize the HTTP prober.

        Args:
            client: Optional client to use; by default one is created
                with certificate verification disabled
            max_body_bytes: Stop reading the response body after this many bytes
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(verify=False, follow_redirects=False)
        self.max_body_bytes = max_body_bytes

    async def probe(self, url: str, timeout: float) -> ProbeResult:
        started = time.perf_counter()
        try:
            parse_target(url)
        except InvalidProbeTarget as e:
            return self._result(ProbeOutcome.UNKNOWN, started, f"invalid url: {e}", url)

        try:
            status_code = await asyncio.wait_for(self._exchange(url, timeout), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._failure(started, ProbeTimeoutError(url, timeout), url)
        except httpx.UnsupportedProtocol as e:
            return self._result(ProbeOutcome.UNKNOWN, started, f"invalid url: {e}", url)
        except (httpx.HTTPError, OSError) as e:
            return self._failure(
                started, ProbeConnectionError(url, f"{type(e).__name__}: {e}"), url
            )

        return self._result(ProbeOutcome.SUCCESS, started, f"HTTP {status_code}", url)

    async def _exchange(self, url: str, timeout: float) -> int:
        async with self._client.stream("GET", url, timeout=timeout) as response:
            received = 0
            async for chunk in response.aiter_bytes():
                received += len(chunk)
                if received >= self.max_body_bytes:
                    break
            return response.status_code

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class TCPProber(Prober):
    """
    Probes by opening a connection to the URL's host and port.

    For https the TLS handshake is completed (without verification)
    before the connection is closed.
    """

    async def probe(self, url: str, timeout: float) -> ProbeResult:
        started = time.perf_counter()
        try:
            target = parse_target(url)
        except InvalidProbeTarget as e:
            return self._result(ProbeOutcome.UNKNOWN, started, f"invalid url: {e}", url)

        host = target.host
        port = target.port or DEFAULT_PORTS[target.scheme]
        ssl_context = insecure_ssl_context() if target.scheme == "https" else None

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    host,
                    port,
                    ssl=ssl_context,
                    server_hostname=host if ssl_context else None,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return self._failure(started, ProbeTimeoutError(url, timeout), url)
        except UnicodeError as e:
            # Raised by the idna codec during name resolution
            return self._result(ProbeOutcome.UNKNOWN, started, f"invalid url: {e}", url)
        except OSError as e:
            return self._failure(
                started, ProbeConnectionError(url, f"{type(e).__name__}: {e}"), url
            )

        result = self._result(ProbeOutcome.SUCCESS, started, f"connected to {host}:{port}", url)

        writer.close()
        # Errors while tearing down an established connection do not change the outcome
        with suppress(OSError, asyncio.TimeoutError):
            await asyncio.wait_for(writer.wait_closed(), timeout=timeout)

        return result


def create_prober(
    mode: ProbeMode | str = ProbeMode.HTTP,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> Prober:
    """
    Factory function to create a prober for the configured mode.

    Raises:
        ValueError: If mode is not http or tcp
    """
    mode = ProbeMode(mode)

    if mode is ProbeMode.HTTP:
        return HTTPProber(max_body_bytes=max_body_bytes)

    return TCPProber()
