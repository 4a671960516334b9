"""Health status classification and payload composition."""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

OK = "ok"
DEGRADED = "degraded"
ERROR = "error"

# Wire-format query for "example.com" A/IN, base64url without padding.
HEALTH_CHECK_DNS_QUERY = "AAABAAABAAAAAAAAB2V4YW1wbGUDY29tAAABAAE"

LATENCY_DEGRADED_MS = 400
LATENCY_ERROR_MS = 800


def is_success_status(status_code: int) -> bool:
    """Anything below 400 counts as a healthy answer from the next hop."""
    return status_code < 400


def classify_upstream(status_code: int) -> str:
    return OK if is_success_status(status_code) else DEGRADED


def classify_latency(*latencies: Optional[int]) -> str:
    """
    Classify hop latencies the way the dashboard presents them.

    A missing measurement is reported as degraded; any hop above
    LATENCY_ERROR_MS is an error, any above LATENCY_DEGRADED_MS is degraded.
    """
    if not latencies or any(value is None for value in latencies):
        return DEGRADED
    worst = max(latencies)
    if worst > LATENCY_ERROR_MS:
        return ERROR
    if worst > LATENCY_DEGRADED_MS:
        return DEGRADED
    return OK


def elapsed_ms(start: float, end: float) -> int:
    """Whole milliseconds between two clock readings in seconds."""
    return int(round((end - start) * 1000))


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class HealthResult:
    """Health of one upstream resolver as measured by the worker relay."""
    status: str
    worker_base: str
    doh_endpoint: str
    upstream_url: str
    upstream_status: Optional[int]
    latency_ms: Optional[int]
    message: str
    checked_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def reachable(cls, worker_base: str, upstream_url: str, status_code: int, latency_ms: int) -> "HealthResult":
        status = classify_upstream(status_code)
        message = "Upstream DoH reachable" if status == OK else "Upstream returned non-2xx/3xx status"
        return cls(
            status=status,
            worker_base=worker_base,
            doh_endpoint=f"{worker_base}/dns-query",
            upstream_url=upstream_url,
            upstream_status=status_code,
            latency_ms=latency_ms,
            message=message,
        )

    @classmethod
    def failed(cls, worker_base: str, upstream_url: str, error: Exception) -> "HealthResult":
        return cls(
            status=ERROR,
            worker_base=worker_base,
            doh_endpoint=f"{worker_base}/dns-query",
            upstream_url=upstream_url,
            upstream_status=None,
            latency_ms=None,
            message=str(error),
        )

    @property
    def http_status(self) -> int:
        return 200 if self.status == OK else 502

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "worker_base": self.worker_base,
            "doh_endpoint": self.doh_endpoint,
            "upstream_url": self.upstream_url,
            "upstream_status": self.upstream_status,
            "latency_ms": self.latency_ms,
            # Older dashboards read this name.
            "upstream_latency_ms": self.latency_ms,
            "message": self.message,
            "checked_at": self.checked_at,
        }


@dataclass
class WorkerHealthPayload:
    """
    The worker's health body as seen by the edge relay.

    Only status and message influence the edge's decision. ``fields`` keeps
    the whole object, in the worker's key order, so it can be republished.
    """
    status: Optional[str] = None
    message: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, body: bytes) -> "WorkerHealthPayload":
        """Parse a worker body; anything that is not a JSON object yields an empty payload."""
        try:
            data = json.loads(body)
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        fields = dict(data)
        status = fields.get("status")
        message = fields.get("message")
        return cls(
            status=status if isinstance(status, str) else None,
            message=message if isinstance(message, str) else None,
            fields=fields,
        )


def merge_edge_health(
    worker: WorkerHealthPayload,
    edge_latency_ms: int,
    worker_ok: bool,
    checked_at: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Combine the worker's payload with the edge hop's own measurement.

    Args:
        worker: Parsed worker health payload
        edge_latency_ms: Edge-to-worker round trip in milliseconds
        worker_ok: Whether the worker's HTTP status was a success
        checked_at: Completion timestamp; defaults to now

    Returns:
        Dict ready for JSON serialisation
    """
    payload = dict(worker.fields)
    payload["edge_latency_ms"] = edge_latency_ms
    payload["arvan_checked_at"] = checked_at or utc_now_iso()
    payload["status"] = worker.status or (OK if worker_ok else DEGRADED)
    payload["message"] = worker.message or (
        "Worker /healthz reachable" if worker_ok else "Worker /healthz returned an unsuccessful status"
    )
    return payload


def edge_transport_failure(error: Exception, checked_at: Optional[str] = None) -> Dict[str, Any]:
    """Payload for when the edge could not reach the worker at all."""
    return {
        "status": ERROR,
        "message": f"Failed to reach worker /healthz: {error}",
        "upstream_status": None,
        "latency_ms": None,
        "upstream_latency_ms": None,
        "edge_latency_ms": None,
        "arvan_checked_at": checked_at or utc_now_iso(),
    }
