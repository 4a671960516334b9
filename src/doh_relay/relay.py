"""Behaviour shared by the edge and worker relay tiers."""
import time
from typing import Callable, Dict, List, Optional, Tuple

import httpx
from fastapi import Request
from fastapi.responses import Response

from .config import Settings, logger
from .dashboard import render_dashboard
from .errors import ClientInputError, UpstreamTransportError
from .forwarder import forward_doh, read_doh_query, relay_response
from .health import elapsed_ms
from .responses import plain_text


def request_origin(request: Request) -> str:
    """scheme://host[:port] of the request being served."""
    return f"{request.url.scheme}://{request.url.netloc}"


class BaseRelay:
    """
    One forwarding hop.

    Subclasses choose where queries go and how health is measured; parsing,
    forwarding, failure mapping and the privacy-gated logging live here.
    """

    tier = "RELAY"
    failure_message = "Next hop fetch failed"

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Args:
            settings: Process settings
            client: Outbound HTTP client; the app lifespan supplies one when omitted
            clock: Monotonic clock in seconds, used for latency measurement
        """
        self.settings = settings
        self.client = client
        self.clock = clock

    def log(self, message: str):
        if self.settings.logging_enabled:
            logger.info(f"[{self.tier}] {message}")

    def log_error(self, message: str):
        if self.settings.logging_enabled:
            logger.error(f"[{self.tier}] {message}")

    def query_target(self) -> Tuple[str, Dict[str, str]]:
        """Return the DoH URL to forward to and tier-specific response headers."""
        raise NotImplementedError

    def dashboard_targets(self) -> List[str]:
        raise NotImplementedError

    async def handle_query(self, request: Request) -> Response:
        try:
            query = await read_doh_query(request)
        except ClientInputError as e:
            return plain_text(e.message, e.status_code)

        target_url, extra_headers = self.query_target()
        extra_headers["X-DoH-Proxy"] = self.settings.proxy_identity
        self.log(f"Forwarding DoH {query.method} to {target_url}")

        start = self.clock()
        try:
            upstream = await forward_doh(self.client, target_url, query)
        except UpstreamTransportError as e:
            self.log_error(f"{self.failure_message} ({e.url}): {e}")
            return plain_text(f"{self.failure_message}: {e}", 502)

        self.log(f"{target_url} answered {upstream.status_code} in {elapsed_ms(start, self.clock())}ms")
        return relay_response(upstream, extra_headers)

    async def handle_health(self, request: Request) -> Response:
        raise NotImplementedError

    def handle_dashboard(self, request: Request) -> Response:
        return render_dashboard(
            request,
            tier=self.tier.lower(),
            origin=request_origin(request),
            targets=self.dashboard_targets(),
        )
