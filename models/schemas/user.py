from marshmallow import EXCLUDE, Schema, fields, pre_load


# passwords are taken verbatim
SECRET_KEYS = {"password", "oldPassword", "newPassword"}


def _strip_strings(data):
    if not isinstance(data, dict):
        return data
    return {
        k: v.strip() if isinstance(v, str) and k not in SECRET_KEYS else v
        for k, v in data.items()
    }


class _Input(Schema):
    """Shape-only input: presence of required fields is checked by AccountManager."""

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        return _strip_strings(data)


class UserRegisterSchema(_Input):
    username = fields.String(load_default=None)
    email = fields.String(load_default=None)
    password = fields.String(load_default=None, load_only=True)
    full_name = fields.String(load_default=None, data_key="fullName")


class UserLoginSchema(_Input):
    username = fields.String(load_default=None)
    email = fields.String(load_default=None)
    password = fields.String(load_default=None, load_only=True)


class RefreshSchema(_Input):
    refresh_token = fields.String(load_default=None, data_key="refreshToken")


class AccountUpdateSchema(_Input):
    full_name = fields.String(load_default=None, data_key="fullName")
    email = fields.String(load_default=None)


class PasswordChangeSchema(_Input):
    old_password = fields.String(load_default=None, data_key="oldPassword", load_only=True)
    new_password = fields.String(load_default=None, data_key="newPassword", load_only=True)


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String(allow_none=True)
    cover_image = fields.String(allow_none=True, data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
