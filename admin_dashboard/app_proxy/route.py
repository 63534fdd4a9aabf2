import json
import logging
from typing import Dict, Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from opentelemetry import trace

from admin_dashboard.utils import is_json_content_type
from admin_dashboard.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)
from admin_dashboard.utils.traced_requests import traced_request
from admin_dashboard.vars import PROXY_PREFIX, PROXY_TIMEOUT, UPSTREAM_BASE_URL

router = APIRouter(prefix=PROXY_PREFIX)
tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]
BODYLESS_METHODS = {"GET", "HEAD"}

TRANSPORT_ERROR_STATUS = 500
TRANSPORT_ERROR_MESSAGE = "Failed to connect to API Gateway"

# Hop-by-hop headers that should NOT be forwarded (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Recomputed by the HTTP client for the outbound request
RECOMPUTED_HEADERS = {"host", "content-length", "content-type"}


class InvalidRequestBody(ValueError):
    """The inbound body claims to be JSON but does not parse."""


def get_target_url(request: Request) -> str:
    """
    Construct the upstream URL for an inbound request.

    The upstream base URL is concatenated with the full inbound path,
    prefix included, so ``/api/preferences/alice?x=1`` becomes
    ``<UPSTREAM_BASE_URL>/api/preferences/alice?x=1``.
    """
    path = request.url.path
    if not path.startswith("/"):
        path = "/" + path

    query_string = str(request.url.query)
    if query_string:
        path = f"{path}?{query_string}"

    return f"{UPSTREAM_BASE_URL}{path}"


def prepare_headers(request: Request) -> Dict[str, str]:
    """
    Prepare headers for forwarding to the upstream gateway.
    Removes hop-by-hop headers and adds proxy headers.
    """
    headers = {}

    for name, value in request.headers.items():
        name_lower = name.lower()
        if name_lower in HOP_BY_HOP_HEADERS or name_lower in RECOMPUTED_HEADERS:
            continue
        headers[name_lower] = value

    client_ip = request.client.host if request.client else "unknown"
    existing_xff = headers.get("x-forwarded-for", "")
    headers["x-forwarded-for"] = f"{existing_xff}, {client_ip}".strip(", ")
    headers["x-forwarded-host"] = request.headers.get("host", "")
    headers["x-forwarded-proto"] = request.url.scheme
    headers["x-forwarded-prefix"] = PROXY_PREFIX
    headers["x-real-ip"] = client_ip

    return headers


def build_upstream_body(method: str, raw_body: bytes, content_type: str) -> Optional[bytes]:
    """
    Serialize the inbound body for the upstream call.

    GET and HEAD carry no body. Every other method always sends JSON:
    the parsed inbound JSON body, or an empty object when the body is
    empty or not declared as JSON.
    """
    if method.upper() in BODYLESS_METHODS:
        return None

    payload = {}
    if raw_body and is_json_content_type(content_type):
        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            raise InvalidRequestBody(format_exception_message(e)) from e

    return json.dumps(payload).encode("utf-8")


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant {name}")


def relay_response(response: httpx.Response) -> Response:
    """
    Translate the upstream response into the response sent to the caller.

    Status is always passed through. JSON bodies are parsed and re-serialized;
    anything else, including a JSON content type whose body does not parse,
    is relayed byte for byte with the upstream content type.
    """
    content_type = response.headers.get("content-type", "")

    if is_json_content_type(content_type):
        try:
            data = json.loads(response.content, parse_constant=_reject_constant)
        except ValueError:
            logger.warning(
                f"[Proxy] Upstream declared JSON but body did not parse, relaying raw ({response.status_code})"
            )
        else:
            return JSONResponse(content=data, status_code=response.status_code)

    return Response(
        content=response.content,
        status_code=response.status_code,
        media_type=content_type or None,
    )


def transport_error_response(exception: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=TRANSPORT_ERROR_STATUS,
        content={
            "error": TRANSPORT_ERROR_MESSAGE,
            "details": format_exception_message(exception),
        },
    )


def create_upstream_client(
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the client used for a single forwarded request; redirects are followed."""
    kwargs = {"follow_redirects": True, "transport": transport}
    if PROXY_TIMEOUT is not None:
        kwargs["timeout"] = httpx.Timeout(PROXY_TIMEOUT)
    return httpx.AsyncClient(**kwargs)


async def forward_to_target(request: Request) -> Response:
    """
    Forward an inbound request to the upstream gateway and relay its answer.

    Upstream non-2xx statuses are not errors here and are relayed as-is.
    Only transport failures such as refused connections or timeouts
    are translated into a 500 with an ``{error, details}`` payload. There
    is no retry and no caching.
    """
    target_url = get_target_url(request)

    with traced_request(
        tracer,
        operation="proxy_request",
        start_message=f"[Proxy] {request.method} {target_url}",
        extra_attrs={"proxy.method": request.method, "proxy.target_url": target_url},
    ) as span:
        try:
            body = build_upstream_body(
                request.method,
                await request.body(),
                request.headers.get("content-type", ""),
            )
        except InvalidRequestBody as e:
            logger.warning(f"[Proxy] Rejecting malformed JSON body for {target_url}: {e}")
            span.set_attribute("proxy.error", "invalid_body")
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid JSON body", "details": str(e)},
            )

        headers = prepare_headers(request)
        if body is not None:
            headers["content-type"] = "application/json"

        try:
            async with create_upstream_client() as client:
                response = await client.request(
                    method=request.method,
                    url=target_url,
                    headers=headers,
                    content=body,
                )
        except httpx.RequestError as e:
            log_exception_with_details(logger, "[Proxy]", e)
            span.set_attribute("proxy.error", type(e).__name__)
            return transport_error_response(e)

        span.set_attribute("proxy.status_code", response.status_code)
        logger.debug(f"[Proxy] {request.method} {target_url} -> {response.status_code}")
        return relay_response(response)


@router.api_route("", methods=PROXY_METHODS)
@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy_all(request: Request):
    """Catch-all route that forwards everything under the prefix to the gateway."""
    return await forward_to_target(request)
