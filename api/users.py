from __future__ import annotations

from flask import Blueprint, jsonify, g, abort

from models import storage
from models.user import User
from models.schemas.user import UserMeSchema
from utils.decorators import jwt_required

bp = Blueprint("users", __name__)

user_me_schema = UserMeSchema()


@bp.get("/me")
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
      404:
        description: User no longer exists
    """
    user = storage.get(User, g.current_user_id)
    if not user:
        abort(404, description="user not found")
    return jsonify(user_me_schema.dump(user)), 200
