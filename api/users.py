from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, jsonify, g, abort, current_app

from models.user import User
from models.schemas.user import UserOutSchema, IdentitySchema
from utils.decorators import jwt_required, admin_required
from utils.sessions import store_errors

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_list_out_schema = UserOutSchema(many=True)
identity_schema = IdentitySchema()


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


@bp.get("/me")
@jwt_required()
def me():
    """
    Identity carried by the current access token
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: No token provided
      403:
        description: Invalid or expired token
    """
    return jsonify({"user": identity_schema.dump(g.current_user)}), 200


@bp.get("/users")
@admin_required()
def list_users():
    """
    Admin-only: list registered users
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
      401: { description: No token provided }
      403: { description: Not an admin }
    """
    page, limit = parse_pagination()
    storage = current_app.extensions["session_manager"].storage

    with store_errors("listing users"):
        query = storage.get_session().query(User)
        total = query.count()
        rows = query.order_by(User.name.asc()).offset((page - 1) * limit).limit(limit).all()

    return jsonify(
        {
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    ), 200
