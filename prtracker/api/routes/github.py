"""
GitHub proxy routes.

The browser never talks to GitHub directly: REST and GraphQL calls go through
here so the access token can stay in an HttpOnly cookie. Successful upstream
answers are relayed verbatim; failures use the {error, details} envelope with
the upstream status code preserved.
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from prtracker.api.session import get_authorization, get_gateway
from prtracker.auth.login import DEVICE_FLOW_SCOPE
from prtracker.config import settings
from prtracker.core.responses import error_response
from prtracker.integrations.github.exceptions import TransportError
from prtracker.integrations.github.gateway import GitHubGateway
from prtracker.utils.logger import logger

router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


class DeviceCodeRequest(BaseModel):
    client_id: Optional[str] = None
    scope: str = DEVICE_FLOW_SCOPE


class DeviceTokenRequest(BaseModel):
    client_id: Optional[str] = None
    device_code: str


def relay(upstream) -> Response:
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type"),
    )


def upstream_error(upstream, label: str, with_url: bool = False) -> Response:
    message = f"{label} error: {upstream.status_code} {upstream.reason_phrase}"
    logger.error(message)
    return error_response(
        message,
        details=upstream.text,
        status_code=upstream.status_code,
        url=str(upstream.request.url) if with_url else None,
    )


@router.api_route("/github-proxy/{path:path}", methods=PROXY_METHODS)
async def github_proxy(
    path: str,
    request: Request,
    authorization: Optional[str] = Depends(get_authorization),
    gateway: GitHubGateway = Depends(get_gateway),
):
    body = None
    raw = await request.body()
    if raw:
        try:
            body = json.loads(raw)
        except ValueError:
            return error_response("Request body must be valid JSON", status_code=400)

    try:
        upstream = await gateway.send(
            request.method,
            path,
            authorization=authorization,
            params=request.query_params.multi_items() or None,
            json=body,
        )
    except TransportError as e:
        return error_response("GitHub API request failed", details=str(e), status_code=500)

    if not upstream.is_success:
        return upstream_error(upstream, "GitHub API", with_url=True)
    return relay(upstream)


@router.post("/github-graphql")
async def github_graphql(
    request: Request,
    authorization: Optional[str] = Depends(get_authorization),
    gateway: GitHubGateway = Depends(get_gateway),
):
    try:
        upstream = await gateway.send_graphql(await request.body(), authorization)
    except TransportError as e:
        return error_response(
            "GitHub GraphQL API request failed", details=str(e), status_code=500
        )

    if not upstream.is_success:
        return upstream_error(upstream, "GitHub GraphQL API")
    return relay(upstream)


@router.post("/github-device-code")
async def github_device_code(
    payload: DeviceCodeRequest, gateway: GitHubGateway = Depends(get_gateway)
):
    client_id = payload.client_id or settings.GITHUB_CLIENT_ID
    if not client_id:
        return error_response("client_id is required", status_code=400)

    try:
        upstream = await gateway.request_device_code(client_id, payload.scope)
    except TransportError as e:
        return error_response("Failed to get device code", details=str(e), status_code=500)

    if not upstream.is_success:
        logger.error(f"Device code API error: {upstream.text}")
        return error_response(
            f"GitHub device code API error: {upstream.status_code}",
            details=upstream.text,
            status_code=upstream.status_code,
        )
    return relay(upstream)


@router.post("/github-device-token")
async def github_device_token(
    payload: DeviceTokenRequest, gateway: GitHubGateway = Depends(get_gateway)
):
    client_id = payload.client_id or settings.GITHUB_CLIENT_ID
    if not client_id:
        return error_response("client_id is required", status_code=400)

    try:
        upstream = await gateway.exchange_device_code(client_id, payload.device_code)
    except TransportError as e:
        return error_response("Failed to exchange token", details=str(e), status_code=500)

    # Pending authorizations come back as 200 with an "error" field; relay them as-is.
    return relay(upstream)
