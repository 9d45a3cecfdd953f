"""
Authentication blueprint:
- POST /register
- POST /login
- GET  /refresh
- POST /logout

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and day-long refresh tokens (JWTs, separate secrets)
- Stores refresh tokens in the DB (RefreshToken model) so logout can revoke them
- Hands the refresh token to the browser as an http-only cookie
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from models.schemas.user import UserRegisterSchema, UserLoginSchema, UserOutSchema
from utils.exceptions import InvalidCredentials, UserNotFound
from utils.sessions import SessionManager

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()


def _sessions() -> SessionManager:
    return current_app.extensions["session_manager"]


def _cookie_name() -> str:
    return current_app.extensions["auth_settings"].cookie_name


def _cookie_options() -> dict:
    return {"httponly": True, "secure": True, "samesite": "None", "path": "/"}


@bp.post("/register")
def register():
    """
    Register a new user.
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
            role: { type: string, enum: [user, admin] }
    responses:
      201:
        description: Created
      400:
        description: Validation error or user already exists
    """
    payload = request.get_json(silent=True) or {}
    data = user_register_schema.load(payload)

    user = _sessions().register(
        name=data["name"],
        email=data["email"],
        password=data["password"],
        role=data.get("role"),
    )

    return jsonify(
        {
            "message": "User registered successfully!",
            "user": user_out_schema.dump(user),
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login: returns an access token and sets the refresh-token cookie
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns accessToken and user)
      400:
        description: Invalid email/password
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    try:
        result = _sessions().login(data["email"], data["password"])
    except (UserNotFound, InvalidCredentials):
        # Unknown email and wrong password look the same to the client
        raise InvalidCredentials() from None

    settings = current_app.extensions["auth_settings"]
    resp = jsonify(
        {
            "accessToken": result.access_token,
            "user": user_out_schema.dump(result.user),
        }
    )
    resp.set_cookie(
        settings.cookie_name,
        result.refresh_token,
        max_age=int(settings.refresh_ttl.total_seconds()),
        **_cookie_options(),
    )
    return resp, 200


@bp.get("/refresh")
def refresh():
    """
    Mint a new access token from the refresh-token cookie
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (returns accessToken and user)
      401:
        description: No refresh token cookie
      403:
        description: Invalid, expired or revoked refresh token
      404:
        description: User not found
    """
    result = _sessions().refresh(request.cookies.get(_cookie_name()))
    return jsonify(
        {
            "accessToken": result.access_token,
            "user": user_out_schema.dump(result.user),
        }
    ), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the refresh token and clears its cookie
    ---
    tags:
      - Auth
    responses:
      200:
        description: Logged out (also when there was nothing to revoke)
    """
    token = request.cookies.get(_cookie_name())
    if not token:
        return jsonify({"message": "No token to clear, already logged out"}), 200

    _sessions().logout(token)

    resp = jsonify({"message": "Logged out successfully"})
    resp.delete_cookie(_cookie_name(), **_cookie_options())
    return resp, 200
