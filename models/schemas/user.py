from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError

from models.schemas.common import strip_fields


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class _NormalizingSchema(Schema):
    @pre_load
    def normalize(self, data, **kwargs):
        data = strip_fields(data, "name")
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserCreateSchema(_NormalizingSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 6:
            raise ValidationError("Password must be at least 6 characters long.")


class UserLoginSchema(_NormalizingSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=1))


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class UserOutSchema(Schema):
    id = fields.Integer()
    name = fields.String()
    email = fields.String()


class UserMeSchema(UserOutSchema):
    role = fields.Function(lambda obj: obj.role.value if obj.role is not None else None)
    created_at = fields.DateTime()
