from __future__ import annotations

from flask import Blueprint, g, jsonify

from models.schemas.user import AccountUpdateSchema, PasswordChangeSchema, UserOutSchema
from utils.decorators import accounts, jwt_required

from .uploads import request_payload, save_upload

bp = Blueprint("users", __name__)

account_update_schema = AccountUpdateSchema()
password_change_schema = PasswordChangeSchema()
user_out_schema = UserOutSchema()


@bp.get("/users/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(
        {
            "data": user_out_schema.dump(g.current_user),
            "message": "Current user fetched successfully",
        }
    ), 200


@bp.patch("/users/me")
@jwt_required()
def update_account():
    """
    Update full name and email of the current user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             fullName: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      409: { description: Email already registered }
      422: { description: Validation error }
    """
    data = account_update_schema.load(request_payload())
    user = accounts().update_account_details(g.current_user.id, data["full_name"], data["email"])
    return jsonify(
        {
            "data": user_out_schema.dump(user),
            "message": "Account details updated successfully",
        }
    ), 200


@bp.post("/users/me/password")
@jwt_required()
def change_password():
    """
    Change the current user's password.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200: { description: Password changed }
      401: { description: Old password does not match }
    """
    data = password_change_schema.load(request_payload())
    accounts().change_password(g.current_user.id, data["old_password"], data["new_password"])
    return jsonify({"data": {}, "message": "Password changed successfully"}), 200


@bp.patch("/users/me/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar (multipart field `avatar`).
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - in: formData
        name: avatar
        type: file
        required: true
    responses:
      200: { description: OK }
      422: { description: File missing or upload failed }
    """
    user = accounts().update_avatar(g.current_user.id, save_upload("avatar"))
    return jsonify(
        {
            "data": user_out_schema.dump(user),
            "message": "Avatar updated successfully",
        }
    ), 200


@bp.patch("/users/me/cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image (multipart field `coverImage`).
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - in: formData
        name: coverImage
        type: file
        required: true
    responses:
      200: { description: OK }
      422: { description: File missing or upload failed }
    """
    user = accounts().update_cover_image(g.current_user.id, save_upload("coverImage"))
    return jsonify(
        {
            "data": user_out_schema.dump(user),
            "message": "Cover image updated successfully",
        }
    ), 200
