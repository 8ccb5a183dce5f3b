from marshmallow import Schema, ValidationError, fields, pre_load, validate

from utils.validators import (
    EMAIL_MAX_LENGTH,
    MIN_PASSWORD_LENGTH,
    NAME_MAX_LENGTH,
    ROLES,
    is_valid_phone,
)

PASSWORD_LENGTH = validate.Length(
    min=MIN_PASSWORD_LENGTH,
    error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
)
EMAIL_LENGTH = validate.Length(max=EMAIL_MAX_LENGTH)
NAME_LENGTH = validate.Length(max=NAME_MAX_LENGTH)


def validate_phone(value):
    # Empty means "no phone number"
    if value and not is_valid_phone(value):
        raise ValidationError("Invalid phone number.")


def _strip_strings(data):
    if isinstance(data, dict):
        return {k: v.strip() if isinstance(v, str) and k != "password" else v for k, v in data.items()}
    return data


class SignupSchema(Schema):
    email = fields.Email(required=True, validate=EMAIL_LENGTH)
    password = fields.String(required=True, load_only=True, validate=PASSWORD_LENGTH)
    first_name = fields.String(allow_none=True, load_default=None, validate=NAME_LENGTH)
    last_name = fields.String(allow_none=True, load_default=None, validate=NAME_LENGTH)
    phone_number = fields.String(allow_none=True, load_default=None, validate=validate_phone)
    role = fields.String(load_default="customer", validate=validate.OneOf(ROLES))

    @pre_load
    def normalize(self, data, **kwargs):
        # Emails are trimmed but keep their case
        return _strip_strings(data)


class ProfileUpdateSchema(Schema):
    email = fields.Email(required=True, validate=EMAIL_LENGTH)
    first_name = fields.String(allow_none=True, load_default=None, validate=NAME_LENGTH)
    last_name = fields.String(allow_none=True, load_default=None, validate=NAME_LENGTH)
    phone_number = fields.String(allow_none=True, load_default=None, validate=validate_phone)

    @pre_load
    def normalize(self, data, **kwargs):
        return _strip_strings(data)


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String()
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    phone_number = fields.String(allow_none=True)
    role = fields.String()
    is_active = fields.Boolean()
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
