from marshmallow import Schema, fields, pre_load, validate

from models.account import ROLES, DEFAULT_ROLE
from models.credential_store import normalize_email


def _strip(data, *keys):
    for key in keys:
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    return data


class AccountCreateSchema(Schema):
    name = fields.String(
        required=True,
        validate=validate.Length(min=2, max=50, error="Name must be between {min} and {max} characters"),
    )
    email = fields.Email(required=True, error_messages={"invalid": "Please provide a valid email"})
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, error="Password must be at least {min} characters"),
    )
    role = fields.String(
        load_default=DEFAULT_ROLE,
        validate=validate.OneOf(ROLES, error="Role must be either admin or super-admin"),
    )

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = _strip(dict(data), "name")
            if "email" in data:
                data["email"] = normalize_email(data["email"])
        return data


class LoginSchema(Schema):
    email = fields.String(required=True, error_messages={"required": "Email and password are required"})
    password = fields.String(required=True, load_only=True, error_messages={"required": "Email and password are required"})

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = normalize_email(data["email"])
        return data


class AccountUpdateSchema(Schema):
    name = fields.String(validate=validate.Length(min=2, max=50))

    @pre_load
    def normalize(self, data, **kwargs):
        return _strip(dict(data), "name") if isinstance(data, dict) else data


class PasswordChangeSchema(Schema):
    current_password = fields.String(required=True, load_only=True)
    new_password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, error="Password must be at least {min} characters"),
    )


class AccountStatusSchema(Schema):
    is_active = fields.Boolean(required=True)


class AccountRoleSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf(ROLES))


class AccountOutSchema(Schema):
    id = fields.String()
    name = fields.String()
    email = fields.String()
    role = fields.String()
    is_active = fields.Boolean()
    last_login = fields.DateTime(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
