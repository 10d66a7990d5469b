from __future__ import annotations

import logging
from typing import Any

from marshmallow import ValidationError

from models import storage
from models.base_model import utcnow
from models.schemas import field_errors
from models.schemas.user import GoogleProfileSchema
from models.user import Provider, User, UserRole
from services.exceptions import AuthenticationRequired, NotFound

logger = logging.getLogger(__name__)

profile_schema = GoogleProfileSchema()


def upsert_google_user(profile: Any) -> User:
    """
    Find or create the user behind a Google profile.

    Match order: Google id, then email (linking the Google account to an
    existing local user), else a new user is created.
    """
    try:
        data = profile_schema.load(profile or {})
    except ValidationError as err:
        logger.warning("Rejected Google profile: %s", err.messages)
        raise AuthenticationRequired(
            "Google did not return a usable profile", errors=field_errors(err.messages, profile)
        ) from err

    user = storage.query(User).filter(User.google_id == data["google_id"]).first()
    if user is not None:
        user.last_login = utcnow()
        user.save()
        logger.info("Existing Google user %s signed in", user.id)
        return user

    user = storage.query(User).filter(User.email == data["email"]).first()
    if user is not None:
        user.google_id = data["google_id"]
        user.provider = Provider.GOOGLE.value
        user.avatar = data["avatar"] or user.avatar
        user.email_verified = True
        user.last_login = utcnow()
        user.save()
        logger.info("Linked Google account to user %s", user.id)
        return user

    user = User(
        email=data["email"],
        name=data["name"],
        google_id=data["google_id"],
        avatar=data["avatar"],
        provider=Provider.GOOGLE.value,
        email_verified=data["email_verified"],
        last_login=utcnow(),
    )
    user.save()
    logger.info("Created user %s from Google profile", user.id)
    return user


def get_active_user(user_id: Any) -> User | None:
    """The user for a session id, or None when unknown or deactivated."""
    if not user_id:
        return None
    user = storage.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def promote_admin(email: str) -> User:
    user = storage.query(User).filter(User.email == email.strip().lower()).first()
    if user is None:
        raise NotFound(f"No user with email {email}")
    user.role = UserRole.ADMIN.value
    user.save()
    logger.info("Promoted user %s to admin", user.id)
    return user
