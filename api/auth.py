"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET  /auth/me

The access token travels in the JSON body; the refresh token only ever
travels in an HttpOnly, SameSite=Strict cookie and is rotated on every use.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.user import RegisterSchema, LoginSchema, UserOutSchema
from services.session import IssuedSession, SessionCoordinator
from utils.decorators import jwt_required
from utils.security import utcnow

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
user_out_schema = UserOutSchema()


def _coordinator() -> SessionCoordinator:
    return current_app.extensions["auth"]


def _cookie_name() -> str:
    return current_app.config["REFRESH_COOKIE_NAME"]


def _set_refresh_cookie(response, session: IssuedSession):
    max_age = int((session.refresh_expires_at - utcnow()).total_seconds())
    response.set_cookie(
        _cookie_name(),
        session.refresh_token,
        max_age=max(max_age, 0),
        expires=session.refresh_expires_at,
        path=current_app.config["REFRESH_COOKIE_PATH"],
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        httponly=True,
        samesite="Strict",
    )
    return response


def _session_response(session: IssuedSession, include_user: bool = True):
    body = {"accessToken": session.access_token}
    if include_user and session.user is not None:
        body["user"] = user_out_schema.dump(session.user)
    return _set_refresh_cookie(jsonify(body), session)


@bp.post("/register")
def register():
    """
    Register a new user and open a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [name, email, password]
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: Access token in body, refresh token in cookie
      409:
        description: Email exists
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    session = _coordinator().register(data["name"], data["email"], data["password"])
    return _session_response(session), 200


@bp.post("/login")
def login():
    """
    Login: access token in body, refresh token in cookie
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password]
          properties:
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: OK (returns access token and user)
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    session = _coordinator().login(data["email"], data["password"])
    return _session_response(session), 200


@bp.post("/refresh")
def refresh():
    """
    Rotate the refresh cookie and obtain a new access token
    ---
    tags:
      - Auth
    responses:
      200:
        description: New access token; refresh cookie replaced
      401:
        description: No refresh cookie
      403:
        description: Refresh token expired, revoked or already used
    """
    session = _coordinator().refresh(request.cookies.get(_cookie_name()))
    return _session_response(session, include_user=False), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the refresh cookie (idempotent)
    ---
    tags:
      - Auth
    responses:
      204:
        description: Logged out, cookie cleared
    """
    _coordinator().logout(request.cookies.get(_cookie_name()))
    response = current_app.make_response(("", 204))
    response.delete_cookie(
        _cookie_name(),
        path=current_app.config["REFRESH_COOKIE_PATH"],
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        httponly=True,
        samesite="Strict",
    )
    return response


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Missing or invalid access token
      404:
        description: User no longer exists
    """
    user = _coordinator().me(g.current_user_id)
    return jsonify({"user": user_out_schema.dump(user)}), 200
