"""Edge relay: the client-facing hop in front of a single worker relay."""
from typing import Dict, List, Tuple

from fastapi import Request
from fastapi.responses import Response

from .health import (
    WorkerHealthPayload,
    edge_transport_failure,
    elapsed_ms,
    is_success_status,
    merge_edge_health,
)
from .relay import BaseRelay
from .responses import health_json


class EdgeRelay(BaseRelay):
    """First hop. Always forwards to the configured worker; no load balancing here."""

    tier = "EDGE"
    failure_message = "Worker relay fetch failed"

    def query_target(self) -> Tuple[str, Dict[str, str]]:
        return self.settings.worker_doh_url, {}

    def dashboard_targets(self) -> List[str]:
        return [self.settings.worker_base]

    async def handle_health(self, request: Request) -> Response:
        """
        Call the worker's /healthz, time the hop and republish its payload.

        A worker body that is not a JSON object is treated as empty, so the
        edge still answers with well-formed JSON.
        """
        url = self.settings.worker_health_url
        start = self.clock()
        try:
            res = await self.client.get(url, headers={"Accept": "application/json"})
            edge_latency = elapsed_ms(start, self.clock())
        except Exception as e:
            self.log_error(f"Health check to {url} failed: {e}")
            return health_json(edge_transport_failure(e), 502)

        worker_ok = is_success_status(res.status_code)
        self.log(f"Worker /healthz answered {res.status_code} in {edge_latency}ms")
        payload = merge_edge_health(WorkerHealthPayload.parse(res.content), edge_latency, worker_ok)
        return health_json(payload, 200 if worker_ok else res.status_code)
