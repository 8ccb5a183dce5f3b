"""
Password recovery blueprint:
- POST /password/forgot
- GET  /password/validate-reset-token?token=...
- POST /password/reset
- POST /password/change (access token)
"""
from flask import Blueprint, request, jsonify, g

from models.schemas.auth import ForgotPasswordSchema, ResetPasswordSchema, ChangePasswordSchema
from utils.decorators import get_auth_service, jwt_required
from utils.exceptions import InvalidResetTokenError

bp = Blueprint("password", __name__)

forgot_schema = ForgotPasswordSchema()
reset_schema = ResetPasswordSchema()
change_schema = ChangePasswordSchema()

FORGOT_MESSAGE = "If your email exists in our system, you will receive a password reset link shortly"


@bp.post("/password/forgot")
def forgot_password():
    """
    Request a reset link. The answer is the same for known and unknown emails.
    ---
    tags:
      - Password
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
    responses:
      200:
        description: Accepted
    """
    data = forgot_schema.load(request.get_json(silent=True) or {})
    get_auth_service().forgot_password(data["email"])
    return jsonify({"message": FORGOT_MESSAGE}), 200


@bp.get("/password/validate-reset-token")
def validate_reset_token():
    """
    Check a reset token without consuming it.
    ---
    tags:
      - Password
    parameters:
      - in: query
        name: token
        type: string
        required: true
    responses:
      200:
        description: Token valid (returns the account email)
      400:
        description: Invalid or expired reset token
    """
    token = request.args.get("token", "")
    if not token:
        raise InvalidResetTokenError("Reset token is required")
    email = get_auth_service().validate_reset_token(token)
    return jsonify({"message": "Reset token is valid", "data": {"email": email}}), 200


@bp.post("/password/reset")
def reset_password():
    """
    Set a new password with a reset token; signs the account out everywhere.
    ---
    tags:
      - Password
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            token: { type: string }
            new_password: { type: string }
    responses:
      200:
        description: Password reset
      400:
        description: Invalid or expired reset token
    """
    data = reset_schema.load(request.get_json(silent=True) or {})
    get_auth_service().reset_password(data["token"], data["new_password"])
    return jsonify({"message": "Password reset successfully. Please login with your new password"}), 200


@bp.post("/password/change")
@jwt_required()
def change_password():
    """
    Change the password of the current user.
    ---
    tags:
      - Password
    security:
      - Bearer: []
    consumes:
      - application/json
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
        description: Password changed
      401:
        description: Current password is incorrect
    """
    data = change_schema.load(request.get_json(silent=True) or {})
    get_auth_service().change_password(g.current_user_id, data["current_password"], data["new_password"])
    return jsonify({"message": "Password changed successfully"}), 200
