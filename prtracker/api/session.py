from typing import Optional

from fastapi import Cookie, Header, Request, Response

from prtracker.auth.login import AUTH_METHOD_OAUTH
from prtracker.config import settings
from prtracker.integrations.github.gateway import GitHubGateway, bearer

TOKEN_COOKIE = "github_access_token"
AUTH_METHOD_COOKIE = "auth_method"


def _set_session_cookie(response: Response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def store_session(response: Response, access_token: str, auth_method: str) -> None:
    _set_session_cookie(response, TOKEN_COOKIE, access_token, settings.COOKIE_MAX_AGE)
    _set_session_cookie(response, AUTH_METHOD_COOKIE, auth_method, settings.COOKIE_MAX_AGE)


def clear_session(response: Response) -> None:
    _set_session_cookie(response, TOKEN_COOKIE, "", 0)
    _set_session_cookie(response, AUTH_METHOD_COOKIE, "", 0)


def get_authorization(
    github_access_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Authorization header for GitHub: the session cookie, else the caller's own header."""
    return bearer(github_access_token) or authorization


def get_auth_method(auth_method: Optional[str] = Cookie(None)) -> str:
    return auth_method or AUTH_METHOD_OAUTH


def get_gateway(request: Request) -> GitHubGateway:
    return request.app.state.gateway
