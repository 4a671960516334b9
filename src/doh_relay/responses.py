"""Response helpers shared by both relay tiers."""
import json
from typing import Any, Dict

from fastapi.responses import JSONResponse, PlainTextResponse, Response

DNS_MESSAGE = "application/dns-message"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def cors_headers() -> Dict[str, str]:
    """Fresh copy of the CORS headers every response carries."""
    return dict(CORS_HEADERS)


class HealthJSONResponse(JSONResponse):
    """Indented JSON, matching what the dashboards expect to display."""
    media_type = "application/json; charset=utf-8"

    def render(self, content: Any) -> bytes:
        return json.dumps(content, ensure_ascii=False, indent=2).encode("utf-8")


def plain_text(message: str, status_code: int) -> Response:
    return PlainTextResponse(message, status_code=status_code, headers=cors_headers())


def health_json(payload: Dict[str, Any], status_code: int = 200) -> Response:
    return HealthJSONResponse(payload, status_code=status_code, headers=cors_headers())


def preflight() -> Response:
    return Response(status_code=204, headers=cors_headers())
