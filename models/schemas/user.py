from marshmallow import EXCLUDE, Schema, fields, pre_load

from models.schemas.common import TrimmedString


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class GoogleProfileSchema(Schema):
    """Userinfo claims returned by Google after the OAuth handshake."""

    google_id = fields.String(data_key="sub", required=True)
    email = fields.Email(required=True)
    name = TrimmedString(load_default=None, allow_none=True)
    avatar = fields.String(data_key="picture", load_default=None, allow_none=True)
    email_verified = fields.Boolean(load_default=True)

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserOutSchema(Schema):
    id = fields.String()
    email = fields.String()
    name = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    role = fields.String()
    provider = fields.String()
    is_active = fields.Boolean(data_key="isActive")
    email_verified = fields.Boolean(data_key="emailVerified")
    last_login = fields.DateTime(data_key="lastLogin", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
