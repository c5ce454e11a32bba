"""
AccountManager: registration, login, refresh-token rotation, logout,
password change and profile updates.

Per user the refresh-token column is a single slot:
- empty            -> logged out
- token T          -> logged in, only T may be exchanged
- token T' (login/refresh) -> T is superseded and rejected from now on
Logout empties the slot. There is no blocklist; the slot is the only
revocation mechanism.
"""
from __future__ import annotations

import hmac
import logging
from typing import NamedTuple

from sqlalchemy.exc import IntegrityError

from models.user import User
from utils.exceptions import (
    AuthError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from utils.media import MediaStore, discard_local_file
from utils.security import CredentialHasher, TokenIssuer, TokenPair

logger = logging.getLogger(__name__)

AVATAR_FOLDER = "avatar"
COVER_IMAGE_FOLDER = "cover-image"


class LoginResult(NamedTuple):
    user: User
    tokens: TokenPair


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _require(**fields) -> dict:
    """Trim every field; ValidationError naming the blank ones."""
    cleaned = {name: _clean(value) for name, value in fields.items()}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise ValidationError("All fields are required", details={"missing": missing})
    return cleaned


class AccountManager:
    def __init__(self, storage, hasher: CredentialHasher, tokens: TokenIssuer, media: MediaStore):
        self.storage = storage
        self.hasher = hasher
        self.tokens = tokens
        self.media = media

    # -- registration -----------------------------------------------------

    def register(self, username, email, password, full_name,
                 avatar_path: str | None = None, cover_image_path: str | None = None) -> User:
        try:
            data = _require(username=username, email=email, password=password, full_name=full_name)
        except ValidationError:
            discard_local_file(avatar_path)
            discard_local_file(cover_image_path)
            raise
        username = data["username"].lower()
        email = data["email"].lower()

        if self.storage.username_or_email_taken(username, email):
            discard_local_file(avatar_path)
            discard_local_file(cover_image_path)
            raise ConflictError("User with email or username already exists")

        try:
            password_hash = self.hasher.hash(password)
        except InternalError:
            discard_local_file(avatar_path)
            discard_local_file(cover_image_path)
            raise

        avatar = self._upload(avatar_path, AVATAR_FOLDER, "avatar")
        try:
            cover_image = self._upload(cover_image_path, COVER_IMAGE_FOLDER, "cover image")
        except ValidationError:
            self.media.delete(avatar)
            raise

        user = User(
            username=username,
            email=email,
            full_name=data["full_name"],
            avatar=avatar,
            cover_image=cover_image,
            password_hash=password_hash,
        )
        try:
            self.storage.create(user)
        except IntegrityError as exc:
            # lost a race against a concurrent registration
            self.media.delete(avatar)
            self.media.delete(cover_image)
            raise ConflictError("User with email or username already exists") from exc
        logger.info("Registered user %s", user.id)
        return user

    def _upload(self, local_path, folder, label) -> str | None:
        if not local_path:
            return None
        url = self.media.upload(local_path, folder)
        if not url:
            raise ValidationError(f"Failed to upload {label}")
        return url

    # -- session lifecycle ------------------------------------------------

    def login(self, password, username=None, email=None) -> LoginResult:
        username, email = _clean(username), _clean(email)
        if not (username or email):
            raise ValidationError("Username or email is required")
        if not _clean(password):
            raise ValidationError("Password is required")

        user = self.storage.find_by_username_or_email(username=username or None, email=email or None)
        if user is None:
            raise NotFoundError("User not found")
        if not self.hasher.verify(password, user.password_hash):
            logger.info("Rejected password for user %s", user.id)
            raise AuthError("Invalid password")

        tokens = self.tokens.issue_pair(user)
        # overwrite whatever was stored before: this is the rotation point
        if not self.storage.update_refresh_token(user.id, tokens.refresh_token):
            raise InternalError("Something went wrong while generating refresh and access token")
        logger.info("User %s logged in", user.id)
        return LoginResult(user, tokens)

    def refresh(self, presented_token) -> TokenPair:
        if not _clean(presented_token):
            raise AuthError("Unauthorized request")

        try:
            claims = self.tokens.decode_refresh_token(presented_token)
            user = self.storage.find_by_id(claims.get("sub"), fresh=True)
            if user is None:
                raise AuthError("Invalid refresh token")
            if not user.refresh_token or not hmac.compare_digest(
                presented_token.encode(), user.refresh_token.encode()
            ):
                raise AuthError("Refresh token is expired or used")
        except AuthError as exc:
            logger.info("Refresh rejected: %s", exc.message)
            raise
        except Exception as exc:
            logger.info("Refresh rejected: %s", exc)
            raise AuthError(str(exc) or "Invalid refresh token") from exc

        tokens = self.tokens.issue_pair(user)
        # the stored value is the source of truth: only swap if nobody rotated it meanwhile
        if not self.storage.update_refresh_token(user.id, tokens.refresh_token, expected=presented_token):
            logger.info("Refresh rejected for user %s: token rotated concurrently", user.id)
            raise AuthError("Refresh token is expired or used")
        return tokens

    def logout(self, user_id) -> User | None:
        self.storage.update_refresh_token(user_id, None)
        logger.info("User %s logged out", user_id)
        return self.storage.find_by_id(user_id)

    # -- credentials and profile -------------------------------------------

    def get_user(self, user_id) -> User:
        user = self.storage.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def change_password(self, user_id, old_password, new_password) -> None:
        _require(old_password=old_password, new_password=new_password)
        user = self.get_user(user_id)
        if not self.hasher.verify(old_password, user.password_hash):
            raise AuthError("Invalid old password")
        # Outstanding refresh tokens stay valid. Clearing refresh_token here
        # would log out every other session as well.
        self.storage.update_password_hash(user.id, self.hasher.hash(new_password))
        logger.info("Password changed for user %s", user.id)

    def update_account_details(self, user_id, full_name, email) -> User:
        data = _require(full_name=full_name, email=email)
        email = data["email"].lower()
        user = self.get_user(user_id)
        if email != user.email and self.storage.username_or_email_taken(None, email, exclude_id=user.id):
            raise ConflictError("Email already registered")
        try:
            return self.storage.update_fields(user.id, full_name=data["full_name"], email=email)
        except IntegrityError as exc:
            raise ConflictError("Email already registered") from exc

    def update_avatar(self, user_id, local_path) -> User:
        return self._replace_media(user_id, local_path, "avatar", AVATAR_FOLDER)

    def update_cover_image(self, user_id, local_path) -> User:
        return self._replace_media(user_id, local_path, "cover_image", COVER_IMAGE_FOLDER)

    def _replace_media(self, user_id, local_path, field, folder) -> User:
        label = field.replace("_", " ")
        if not local_path:
            raise ValidationError(f"{label.capitalize()} file is missing")
        try:
            user = self.get_user(user_id)
        except NotFoundError:
            discard_local_file(local_path)
            raise
        previous = getattr(user, field)
        url = self._upload(local_path, folder, label)
        user = self.storage.update_fields(user.id, **{field: url})
        # old file is unreferenced now; deletion is best-effort
        self.media.delete(previous)
        return user
