from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class RegisterSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            data["name"] = data["name"].strip()
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class LoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    name = fields.String(allow_none=True)
    email = fields.String(allow_none=False)
