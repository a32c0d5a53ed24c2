"""
Session gate applied to every request.

Routing policy:

- ``POST /auth/signout`` always goes through and leaves with every session
  cookie cleared.
- Anonymous requests outside the auth pages get a 401 JSON body under
  ``/api/`` and a redirect to ``/auth`` anywhere else.
- Authenticated requests for the auth pages, apart from the confirmation
  page, are sent home.
"""

import enum
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from budgetbook.config import settings
from budgetbook.database import get_db
from budgetbook.services.auth_service import resolve_session

logger = logging.getLogger(__name__)

PUBLIC_PATHS = ("/api/health",)
SIGNOUT_PATH = "/auth/signout"
CONFIRM_PATH = "/auth/confirm"


class GateDecision(str, enum.Enum):
    allow = "allow"
    signout = "signout"
    unauthorized = "unauthorized"
    redirect_to_auth = "redirect_to_auth"
    redirect_home = "redirect_home"


def is_auth_path(path: str) -> bool:
    return path == "/auth" or path.startswith("/auth/")


def route_decision(path: str, method: str, authenticated: bool) -> GateDecision:
    if path == SIGNOUT_PATH and method == "POST":
        return GateDecision.signout
    if path in PUBLIC_PATHS:
        return GateDecision.allow

    auth_path = is_auth_path(path)
    if not authenticated and not auth_path:
        if path.startswith("/api/"):
            return GateDecision.unauthorized
        return GateDecision.redirect_to_auth
    if authenticated and auth_path and not path.startswith(CONFIRM_PATH):
        return GateDecision.redirect_home
    return GateDecision.allow


def clear_session_cookies(request: Request, response) -> None:
    """Expire every cookie carrying the session prefix."""
    names = {name for name in request.cookies if name.startswith(settings.session_cookie_prefix)}
    names.add(settings.session_cookie_name)
    for name in names:
        response.delete_cookie(name, path="/")


def _lookup_user_id(request: Request, token: str):
    # Honour dependency overrides so tests share one database session
    provider = request.app.dependency_overrides.get(get_db, get_db)
    db_gen = provider()
    db = next(db_gen)
    try:
        user = resolve_session(db, token)
        return user.id if user else None
    finally:
        db_gen.close()


async def auth_gate(request: Request, call_next):
    path = request.url.path
    token = request.cookies.get(settings.session_cookie_name)

    user_id = None
    if token:
        user_id = await run_in_threadpool(_lookup_user_id, request, token)
    request.state.user_id = user_id

    decision = route_decision(path, request.method, user_id is not None)

    if decision == GateDecision.signout:
        response = await call_next(request)
        clear_session_cookies(request, response)
        return response
    if decision == GateDecision.unauthorized:
        response = JSONResponse(status_code=401, content={"success": False, "error": "Unauthorized"})
    elif decision == GateDecision.redirect_to_auth:
        response = RedirectResponse("/auth", status_code=303)
    elif decision == GateDecision.redirect_home:
        response = RedirectResponse("/", status_code=303)
    else:
        response = await call_next(request)

    if token and user_id is None and not is_auth_path(path):
        # Stale or forged cookie
        clear_session_cookies(request, response)
    return response


def install_auth_gate(app: FastAPI) -> None:
    app.middleware("http")(auth_gate)
