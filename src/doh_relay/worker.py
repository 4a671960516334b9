"""Worker relay: forwards DoH queries to a randomly chosen public resolver."""
import random
import time
from typing import Callable, Dict, List, Optional, Tuple

import httpx
from fastapi import Request
from fastapi.responses import Response

from .config import Settings
from .health import HEALTH_CHECK_DNS_QUERY, HealthResult, elapsed_ms
from .relay import BaseRelay, request_origin
from .responses import DNS_MESSAGE, health_json
from .upstream_manager import UpstreamSelector, resolve_configured_pool


class WorkerRelay(BaseRelay):
    """Second hop, facing the pool of upstream resolvers."""

    tier = "WORKER"
    failure_message = "Upstream fetch failed"

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.perf_counter,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(settings, client=client, clock=clock)
        self.selector = UpstreamSelector(rng)

    def query_target(self) -> Tuple[str, Dict[str, str]]:
        # The pool is re-derived per request; nothing is shared between requests.
        upstream = self.selector.pick(resolve_configured_pool(self.settings))
        return upstream.url, {"X-DoH-Upstream": upstream.url}

    def dashboard_targets(self) -> List[str]:
        return [upstream.url for upstream in resolve_configured_pool(self.settings)]

    async def handle_health(self, request: Request) -> Response:
        """Run a canned example.com lookup against one upstream and report on it."""
        worker_base = request_origin(request)
        upstream = self.selector.pick(resolve_configured_pool(self.settings))
        url = httpx.URL(upstream.url).copy_set_param("dns", HEALTH_CHECK_DNS_QUERY)

        start = self.clock()
        try:
            res = await self.client.get(url, headers={"Accept": DNS_MESSAGE})
            latency = elapsed_ms(start, self.clock())
        except Exception as e:
            self.log_error(f"Health check against {upstream.url} failed: {e}")
            result = HealthResult.failed(worker_base, upstream.url, e)
        else:
            self.log(f"Health check against {upstream.url}: HTTP {res.status_code} in {latency}ms")
            result = HealthResult.reachable(worker_base, upstream.url, res.status_code, latency)

        return health_json(result.to_dict(), result.http_status)
