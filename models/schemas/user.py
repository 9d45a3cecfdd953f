from marshmallow import Schema, fields, pre_load, validates, validate, ValidationError


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class UserRegisterSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    # Anything other than "admin" falls back to the default role
    role = fields.String(load_default=None, allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("name", "email"):
                if key in data:
                    data[key] = _strip(data[key])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserLoginSchema(Schema):
    email = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _strip(data["email"])
        return data


class UserOutSchema(Schema):
    user_id = fields.String(attribute="id")
    name = fields.String()
    email = fields.String()
    role = fields.Function(lambda obj: obj.role.value if obj.role else None)


class IdentitySchema(Schema):
    user_id = fields.String()
    email = fields.String()
    role = fields.Function(lambda obj: obj.role.value)
