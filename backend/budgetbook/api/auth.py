"""
Login, sign-up and sign-out pages.

These routes live outside ``/api`` so the auth gate treats them as auth pages.
"""

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from budgetbook.config import settings
from budgetbook.dependencies import get_db
from budgetbook.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])

AUTH_PAGE = """<!doctype html>
<html>
  <head><title>{app_name} - Sign in</title></head>
  <body>
    <form method="post" action="/auth">
      <input type="email" name="email" placeholder="Email" required>
      <input type="password" name="password" placeholder="Password" required>
      <button type="submit" name="action" value="login">Log in</button>
      <button type="submit" name="action" value="signup">Sign up</button>
    </form>
  </body>
</html>
"""


@router.get("", response_class=HTMLResponse)
def auth_page():
    return AUTH_PAGE.format(app_name=settings.app_name)


@router.post("")
def submit_auth(
    action: str = Form("login"),
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db)
):
    """Handle both form actions; login sets the session cookie and goes home."""
    if action == "signup":
        auth_service.sign_up(db, email, password)
        return JSONResponse(
            status_code=201,
            content={"success": True, "message": "Account created, you can now log in"},
        )
    if action != "login":
        return JSONResponse(status_code=400, content={"success": False, "error": "Unknown action"})

    session = auth_service.log_in(db, email, password)
    response = RedirectResponse("/", status_code=303)
    response.set_cookie(
        settings.session_cookie_name,
        session.token,
        max_age=settings.session_ttl_hours * 3600,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


@router.get("/confirm")
def confirm(next_path: str = Query("/", alias="next")):
    # Only same-site targets
    target = next_path if next_path.startswith("/") and not next_path.startswith("//") else "/"
    return RedirectResponse(target, status_code=303)


@router.post("/signout")
def sign_out(request: Request, db: Session = Depends(get_db)):
    """End the server-side session; the gate clears the cookies on the way out."""
    auth_service.sign_out(db, request.cookies.get(settings.session_cookie_name))
    return RedirectResponse("/auth", status_code=303)
