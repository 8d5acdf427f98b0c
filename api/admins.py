from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from models.schemas.account import AccountOutSchema, AccountStatusSchema, AccountRoleSchema
from utils.decorators import roles_required

MAX_LIMIT = 100

bp = Blueprint("admins", __name__)

account_out_schema = AccountOutSchema()
account_list_out_schema = AccountOutSchema(many=True)
account_status_schema = AccountStatusSchema()
account_role_schema = AccountRoleSchema()


def _account_service():
    return current_app.extensions["account_service"]


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
    except ValueError:
        raise ValidationError({"pagination": ["page and limit must be integers"]})
    page = max(page, 1)
    limit = max(1, min(limit, MAX_LIMIT))
    return page, limit


@bp.get("/admins")
@roles_required(["super-admin"])
def list_admins(current_account):
    """
    List all admins - super-admin
    ---
    tags:
      - Admins
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
      403: { description: Forbidden }
    """
    page, limit = parse_pagination()
    rows, total = _account_service().list(page, limit)
    return jsonify(
        {
            "success": True,
            "results": len(rows),
            "data": account_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    ), 200


@bp.patch("/admins/<account_id>/status")
@roles_required(["super-admin"])
def set_status(account_id: str, current_account):
    """
    Activate or deactivate an admin - super-admin.
    Deactivation revokes every refresh token of the account.
    ---
    tags:
      - Admins
    security:
      - Bearer: []
    parameters:
      - in: path
        name: account_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            is_active: { type: boolean }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = account_status_schema.load(payload)
    account = _account_service().set_active(current_account, account_id, data["is_active"])
    return jsonify({"success": True, "data": {"admin": account_out_schema.dump(account)}}), 200


@bp.patch("/admins/<account_id>/role")
@roles_required(["super-admin"])
def set_role(account_id: str, current_account):
    """
    Change an admin's role - super-admin
    ---
    tags:
      - Admins
    security:
      - Bearer: []
    parameters:
      - in: path
        name: account_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            role: { type: string, enum: [admin, super-admin] }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = account_role_schema.load(payload)
    account = _account_service().set_role(account_id, data["role"])
    return jsonify({"success": True, "data": {"admin": account_out_schema.dump(account)}}), 200
