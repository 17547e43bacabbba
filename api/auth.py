"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

- Argon2 password hashing (utils.security)
- Short-lived access JWTs (HS256), verified without a DB lookup
- Opaque refresh tokens stored hashed (utils.refresh_tokens), single use: every
  refresh consumes the presented token and hands out a new one
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema, RefreshTokenSchema

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()
refresh_token_schema = RefreshTokenSchema()


def _flow():
    return current_app.extensions["session_flow"]


def _client_meta():
    return request.user_agent.string or None, request.remote_addr


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
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string, minLength: 6 }
    responses:
      201:
        description: Created
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    user = _flow().register(data["name"], data["email"], data["password"])
    return jsonify(user_out_schema.dump(user)), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
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
        description: OK (returns tokens)
      401:
        description: Invalid credentials
      404:
        description: User does not exist
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    user_agent, ip = _client_meta()
    pair = _flow().login(data["email"], data["password"], user_agent=user_agent, ip=ip)
    return jsonify(pair.to_dict()), 200


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation)
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
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns a new token pair)
      401:
        description: Invalid, expired or already used refresh token
    """
    data = refresh_token_schema.load(request.get_json(silent=True) or {})
    user_agent, ip = _client_meta()
    pair = _flow().refresh(data["refresh_token"], user_agent=user_agent, ip=ip)
    return jsonify(pair.to_dict()), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the refresh token. Always succeeds.
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
             refresh_token: { type: string }
    responses:
      200:
        description: Logged out
    """
    payload = request.get_json(silent=True)
    token = payload.get("refresh_token") if isinstance(payload, dict) else None
    _flow().logout(token)
    return jsonify({"message": "logged out"}), 200
