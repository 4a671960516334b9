"""Status dashboard served on the root path of either tier."""
from pathlib import Path
from typing import List

from fastapi import Request
from fastapi.responses import Response
from fastapi.templating import Jinja2Templates

from .health import LATENCY_DEGRADED_MS, LATENCY_ERROR_MS
from .responses import cors_headers

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def render_dashboard(request: Request, tier: str, origin: str, targets: List[str]) -> Response:
    """Render the dashboard page for one tier."""
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "tier": tier,
            "doh_endpoint": f"{origin}/dns-query",
            "targets": targets,
            "degraded_ms": LATENCY_DEGRADED_MS,
            "error_ms": LATENCY_ERROR_MS,
        },
        headers=cors_headers(),
    )
