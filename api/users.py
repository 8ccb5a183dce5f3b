from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, jsonify, abort

from models.schemas.user import UserOutSchema
from utils.decorators import get_auth_service, roles_required

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


@bp.get("/users")
@roles_required(["admin"])
def list_users():
    """
    List all users - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
      - in: query
        name: limit
        type: integer
    responses:
      200: { description: OK }
      403: { description: Insufficient role }
    """
    page, limit = parse_pagination()
    rows, total = get_auth_service().list_users(page, limit)
    return jsonify(
        {
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total}
        }
    )


@bp.post("/users/<user_id>/deactivate")
@roles_required(["admin"])
def deactivate_user(user_id: str):
    """
    Deactivate a user and revoke all of its sessions - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = get_auth_service().deactivate_user(user_id)
    return jsonify({"data": user_out_schema.dump(user)}), 200
