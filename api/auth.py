"""
Authentication blueprint:
- POST  /auth/register
- POST  /auth/login
- POST  /auth/refresh
- POST  /auth/logout
- GET   /auth/me
- PATCH /auth/me
- POST  /auth/me/password

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens (response body) and long-lived refresh
  tokens (HTTP-only cookie), both JWTs signed with HS256
- Records refresh tokens in the token ledger and rotates them on every
  refresh; a rotated-away token presented again revokes every session
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, current_app

from models.schemas.account import (
    AccountCreateSchema,
    AccountOutSchema,
    AccountUpdateSchema,
    LoginSchema,
    PasswordChangeSchema,
)
from utils.decorators import jwt_required
from .extensions import auth_rate_limit, limiter
from utils.exceptions import AppError

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

account_create_schema = AccountCreateSchema()
account_out_schema = AccountOutSchema()
account_update_schema = AccountUpdateSchema()
login_schema = LoginSchema()
password_change_schema = PasswordChangeSchema()


def _sessions():
    return current_app.extensions["session_service"]


def _account_service():
    return current_app.extensions["account_service"]


def _cookie_options() -> dict:
    cfg = current_app.config
    options = {
        "httponly": True,
        "secure": cfg["COOKIE_SECURE"],
        "samesite": cfg["COOKIE_SAMESITE"],
        "path": "/",  # sent to the entire site so logout and other endpoints can read/revoke
    }
    if cfg.get("COOKIE_DOMAIN"):
        options["domain"] = cfg["COOKIE_DOMAIN"]
    return options


def set_refresh_cookie(response, refresh_token: str):
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        refresh_token,
        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        **_cookie_options(),
    )
    return response


def clear_refresh_cookie(response):
    response.delete_cookie(current_app.config["REFRESH_COOKIE_NAME"], **_cookie_options())
    return response


def _presented_refresh_token() -> str | None:
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]) or None


@bp.post("/register")
@limiter.limit(auth_rate_limit)
def register():
    """
    Register a new admin.
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
            role: { type: string, enum: [admin, super-admin] }
    responses:
      201:
        description: Created (refresh token set as cookie)
      400:
        description: Validation error or email already registered
      429:
        description: Too many requests
    """
    payload = request.get_json(silent=True) or {}
    data = account_create_schema.load(payload)

    tokens = _sessions().register(data["name"], data["email"], data["password"], data.get("role"))

    response = jsonify(
        {
            "success": True,
            "message": "Admin registered successfully",
            "data": {
                "admin": account_out_schema.dump(tokens.account),
                "accessToken": tokens.access_token,
            },
        }
    )
    set_refresh_cookie(response, tokens.refresh_token)
    return response, 201


@bp.post("/login")
@limiter.limit(auth_rate_limit)
def login():
    """
    Login: returns an access token and sets the refresh token cookie
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
        description: OK (returns access token)
      401:
        description: Invalid credentials or deactivated account
      429:
        description: Too many requests
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)

    tokens = _sessions().login(data["email"], data["password"])

    response = jsonify(
        {
            "success": True,
            "message": "Login successful",
            "data": {
                "admin": account_out_schema.dump(tokens.account),
                "accessToken": tokens.access_token,
            },
        }
    )
    set_refresh_cookie(response, tokens.refresh_token)
    return response, 200


@bp.post("/refresh")
@limiter.limit(auth_rate_limit)
def refresh():
    """
    Rotate the refresh token cookie and return a new access token.
    Reads the refresh token cookie only; no body.
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (new access token, rotated cookie)
      401:
        description: Invalid, expired or reused refresh token
      429:
        description: Too many requests
    """
    tokens = _sessions().refresh(_presented_refresh_token())

    response = jsonify(
        {
            "success": True,
            "message": "Token refreshed successfully",
            "data": {"accessToken": tokens.access_token},
        }
    )
    set_refresh_cookie(response, tokens.refresh_token)
    return response, 200


@bp.post("/logout")
@jwt_required()
def logout(current_account):
    """
    Logout: revokes the refresh token cookie's token and clears the cookie
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    try:
        _sessions().logout(_presented_refresh_token())
    except AppError:
        # the cookie is cleared whatever the ledger says
        logger.exception("Failed to revoke refresh token on logout for account %s", current_account.id)

    response = jsonify({"success": True, "message": "Logged out successfully"})
    clear_refresh_cookie(response)
    return response, 200


@bp.get("/me")
@jwt_required()
def me(current_account):
    """
    Get the current admin.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"success": True, "data": {"admin": account_out_schema.dump(current_account)}}), 200


@bp.patch("/me")
@jwt_required()
def update_me(current_account):
    """
    Update the current admin's profile (name).
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
    responses:
      200:
        description: OK
    """
    payload = request.get_json(silent=True) or {}
    data = account_update_schema.load(payload)
    account = _account_service().update_profile(current_account, name=data.get("name"))
    return jsonify(
        {"success": True, "message": "Profile updated", "data": {"admin": account_out_schema.dump(account)}}
    ), 200


@bp.post("/me/password")
@jwt_required()
def change_password(current_account):
    """
    Change the current admin's password; every session is revoked.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            current_password: { type: string }
            new_password: { type: string }
    responses:
      200:
        description: Password updated, log in again
      401:
        description: Current password is incorrect
    """
    payload = request.get_json(silent=True) or {}
    data = password_change_schema.load(payload)
    _account_service().change_password(current_account, data["current_password"], data["new_password"])

    response = jsonify({"success": True, "message": "Password updated. Please log in again."})
    clear_refresh_cookie(response)
    return response, 200
