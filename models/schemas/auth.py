from marshmallow import Schema, fields, pre_load

from models.schemas.user import PASSWORD_LENGTH, UserOutSchema


class LoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)
    is_admin = fields.Boolean(load_default=False)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data = {**data, "email": data["email"].strip()}
        return data


class RefreshSchema(Schema):
    refresh_token = fields.String(required=True)


class ForgotPasswordSchema(Schema):
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data = {**data, "email": data["email"].strip()}
        return data


class ResetPasswordSchema(Schema):
    token = fields.String(required=True)
    new_password = fields.String(required=True, load_only=True, validate=PASSWORD_LENGTH)


class ChangePasswordSchema(Schema):
    current_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True, validate=PASSWORD_LENGTH)


class TokenPairSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    access_token_expires_at = fields.Integer()
    refresh_token_expires_at = fields.Integer()
    token_type = fields.Constant("bearer")


class AuthResultSchema(Schema):
    tokens = fields.Nested(TokenPairSchema)
    user = fields.Nested(UserOutSchema)
