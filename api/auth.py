"""
Authentication blueprint:
- POST /auth/signup
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all
- GET  /auth/profile
- PUT  /auth/profile

Access tokens live 15 minutes, refresh tokens 7 days. Every refresh token
is recorded server-side, works for exactly one rotation and is revoked on
logout, on the next login and on password reset/change.
"""
from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint, request, jsonify, g

from models.schemas.auth import LoginSchema, RefreshSchema, AuthResultSchema
from models.schemas.user import SignupSchema, ProfileUpdateSchema, UserOutSchema
from utils.decorators import get_auth_service, jwt_required

bp = Blueprint("auth", __name__)

signup_schema = SignupSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
profile_update_schema = ProfileUpdateSchema()
user_out_schema = UserOutSchema()
auth_result_schema = AuthResultSchema()


def _auth_payload(result):
    return auth_result_schema.dump({"tokens": asdict(result.tokens), "user": result.user})


@bp.post("/auth/signup")
def signup():
    """
    Create a customer account and return a token pair.
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
            first_name: { type: string }
            last_name: { type: string }
            phone_number: { type: string }
    responses:
      201:
        description: Created (tokens + user)
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    data = signup_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().signup(**data)
    return jsonify({"data": _auth_payload(result)}), 201


@bp.post("/auth/login")
def login():
    """
    Login: return access_token and refresh_token.
    Earlier sessions of the account are revoked.
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
             is_admin: { type: boolean }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
    """
    data = login_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().login(data["email"], data["password"], wants_admin=data["is_admin"])
    return jsonify({"data": _auth_payload(result)}), 200


@bp.post("/auth/refresh")
def refresh():
    """
    Exchange a refresh token for a new pair (rotation, single use).
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
        description: OK (returns new tokens)
      401:
        description: Invalid or expired refresh token
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().refresh(data["refresh_token"])
    return jsonify({"data": _auth_payload(result)}), 200


@bp.post("/auth/logout")
@jwt_required()
def logout():
    """
    logout: revokes the given refresh token of the caller
    ---
    tags:
      - Auth
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
             refresh_token: { type: string }
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    get_auth_service().logout(data["refresh_token"], user_id=g.current_user_id)
    return jsonify({"message": "Logged out successfully"}), 200


@bp.post("/auth/logout-all")
@jwt_required()
def logout_all():
    """
    Revoke every refresh token of the caller.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Sessions revoked
    """
    revoked = get_auth_service().logout_all(g.current_user_id)
    return jsonify({"message": "Logged out from all sessions", "data": {"revoked": revoked}}), 200


@bp.get("/auth/profile")
@jwt_required()
def profile():
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
        description: Unauthorized
    """
    user = get_auth_service().get_profile(g.current_user_id)
    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.put("/auth/profile")
@jwt_required()
def update_profile():
    """
    Update name, phone and email of the current user.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email]
          properties:
            email: { type: string }
            first_name: { type: string }
            last_name: { type: string }
            phone_number: { type: string }
    responses:
      200:
        description: OK
      409:
        description: Email already registered
    """
    data = profile_update_schema.load(request.get_json(silent=True) or {})
    user = get_auth_service().update_profile(g.current_user_id, **data)
    return jsonify({"data": user_out_schema.dump(user)}), 200
