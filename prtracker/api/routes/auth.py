from typing import Literal, Optional

from fastapi import APIRouter, Cookie, Depends
from pydantic import BaseModel, Field

from prtracker.api.session import (
    clear_session,
    get_auth_method,
    store_session,
)
from prtracker.auth.login import AUTH_METHOD_OAUTH
from prtracker.core.responses import success_response
from prtracker.utils.logger import logger

router = APIRouter()


class SetTokenRequest(BaseModel):
    access_token: str = Field(..., min_length=1)
    auth_method: Literal["oauth", "token"] = AUTH_METHOD_OAUTH


@router.post("/auth-set-token")
async def set_token(payload: SetTokenRequest):
    response = success_response()
    store_session(response, payload.access_token, payload.auth_method)
    logger.info(f"Session stored (auth_method={payload.auth_method})")
    return response


@router.post("/auth-clear-token")
async def clear_token():
    response = success_response()
    clear_session(response)
    logger.info("Session cleared")
    return response


@router.get("/auth-status")
async def auth_status(
    github_access_token: Optional[str] = Cookie(None),
    auth_method: str = Depends(get_auth_method),
):
    return {"authenticated": bool(github_access_token), "auth_method": auth_method}
