"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

Tokens are returned in the body and also set as http-only cookies
(accessToken / refreshToken). Refresh rotates the pair on every use; logout
clears the stored refresh token, which is the only way to revoke it.
"""
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request
from marshmallow import ValidationError

from models.schemas.user import RefreshSchema, UserLoginSchema, UserOutSchema, UserRegisterSchema
from utils.decorators import ACCESS_COOKIE, REFRESH_COOKIE, accounts, jwt_required
from utils.exceptions import AuthError
from utils.media import discard_local_file
from utils.security import TokenPair

from .uploads import request_payload, save_upload

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
refresh_schema = RefreshSchema()
user_out_schema = UserOutSchema()


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", True),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Lax"),
    }


def _with_session_cookies(response, tokens: TokenPair):
    options = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE, tokens.access_token,
        max_age=int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()), **options
    )
    response.set_cookie(
        REFRESH_COOKIE, tokens.refresh_token,
        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()), **options
    )
    return response


@bp.post("/register")
def register():
    """
    Register a new user. Accepts JSON or multipart with optional avatar / coverImage files.
    ---
    tags:
      - Auth
    consumes:
      - application/json
      - multipart/form-data
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string }
            fullName: { type: string }
    responses:
      201:
        description: Created
      409:
        description: Username or email already registered
      422:
        description: Validation error
    """
    avatar_path = save_upload("avatar")
    cover_image_path = save_upload("coverImage")
    try:
        data = user_register_schema.load(request_payload())
    except ValidationError:
        discard_local_file(avatar_path)
        discard_local_file(cover_image_path)
        raise

    user = accounts().register(
        data["username"], data["email"], data["password"], data["full_name"],
        avatar_path=avatar_path, cover_image_path=cover_image_path,
    )
    return jsonify(
        {
            "data": user_out_schema.dump(user),
            "message": "User registered successfully",
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login with username or email: returns the user, access_token and refresh_token
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
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens, sets cookies)
      401:
        description: Invalid password
      404:
        description: User not found
    """
    data = user_login_schema.load(request_payload())
    result = accounts().login(data["password"], username=data["username"], email=data["email"])

    response = jsonify(
        {
            "data": {
                "user": user_out_schema.dump(result.user),
                "accessToken": result.tokens.access_token,
                "refreshToken": result.tokens.refresh_token,
            },
            "message": "User logged in successfully",
        }
    )
    return _with_session_cookies(response, result.tokens), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange the current refresh token (cookie or body) for a new token pair (rotation)
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
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns new tokens, sets cookies)
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        try:
            token = refresh_schema.load(request_payload())["refresh_token"]
        except ValidationError as exc:
            raise AuthError("Invalid refresh token") from exc

    tokens = accounts().refresh(token)
    response = jsonify(
        {
            "data": {"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token},
            "message": "Access token refreshed",
        }
    )
    return _with_session_cookies(response, tokens), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the stored refresh token and clears the session cookies
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
    user = g.current_user
    accounts().logout(user.id)

    response = jsonify({"data": {}, "message": f"{user.username} logged out successfully"})
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response, 200
