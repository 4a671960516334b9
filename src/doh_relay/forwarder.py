"""DoH request parsing and forwarding to the next hop."""
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from fastapi import Request
from fastapi.responses import Response

from .errors import ClientInputError, UpstreamTransportError
from .responses import DNS_MESSAGE, cors_headers


@dataclass(frozen=True)
class DoHQuery:
    """An inbound DoH query; the payload is never decoded."""
    method: str
    dns_param: Optional[str] = None
    body: Optional[bytes] = None


async def read_doh_query(request: Request) -> DoHQuery:
    """
    Validate an inbound DoH request.

    Raises:
        ClientInputError: 400 for a GET without ``dns``, 405 for other methods
    """
    method = request.method.upper()
    if method == "GET":
        dns_param = request.query_params.get("dns")
        if not dns_param:
            raise ClientInputError(400, "Missing dns query parameter")
        return DoHQuery(method="GET", dns_param=dns_param)
    if method == "POST":
        return DoHQuery(method="POST", body=await request.body())
    raise ClientInputError(405, "Method not allowed")


async def forward_doh(client: httpx.AsyncClient, target_url: str, query: DoHQuery) -> httpx.Response:
    """
    Send the query to the next hop and return its response unread by us.

    Args:
        client: Shared HTTP client
        target_url: DoH endpoint of the next hop
        query: Validated inbound query

    Raises:
        UpstreamTransportError: if the next hop could not be reached
    """
    headers = {"Accept": DNS_MESSAGE}
    if query.method == "GET":
        url = httpx.URL(target_url).copy_set_param("dns", query.dns_param)
        request = client.build_request("GET", url, headers=headers)
    else:
        headers["Content-Type"] = DNS_MESSAGE
        request = client.build_request("POST", target_url, headers=headers, content=query.body)

    try:
        return await client.send(request)
    except httpx.RequestError as e:
        raise UpstreamTransportError(target_url, e) from e


def relay_response(upstream: httpx.Response, extra_headers: Dict[str, str]) -> Response:
    """Relay status and body byte-exact with normalised headers."""
    headers = cors_headers()
    headers.update(extra_headers)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=headers,
        media_type=DNS_MESSAGE,
    )
