"""
users/profile.py — Profile mutations keyed by `action`


Variants
===============================================================================
    action      serializer                 effect
    nickname    NicknameSerializer         rename; sends user_profile_updated
    password    ChangePasswordSerializer   rehash; logs out every session
    email       ChangeEmailSerializer      new email, unverified; logs out every session
    avatar      AvatarSerializer           pick a skin texture as avatar
    delete      DeleteAccountSerializer    remove the account; logs out every session

PROFILE_ACTIONS maps every ProfileAction member to its (serializer, handler)
pair. handle_profile_action() validates the payload with the action's own
serializer, then runs the handler inside one transaction. Handlers receive
validated data only and return an Outcome envelope.

Errors
- Unknown/missing action, or a body that is not an object → errno 1 "Illegal parameters."
- Validation / credential / conflict / not found → errno 1 with a message
- Unexpected DatabaseError          → errno 3 carrying the database message
"""

import logging
from collections.abc import Mapping

from django.contrib.auth import get_user_model
from django.db import DatabaseError, models, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext as _

from .envelopes import Errno, Outcome, first_error
from .models import Texture
from .serializers import (
    AvatarSerializer,
    ChangeEmailSerializer,
    ChangePasswordSerializer,
    DeleteAccountSerializer,
    NicknameSerializer,
)
from .signals import user_profile_updated

logger = logging.getLogger(__name__)


class ProfileAction(models.TextChoices):
    NICKNAME = "nickname", "Change nickname"
    PASSWORD = "password", "Change password"
    EMAIL = "email", "Change email"
    AVATAR = "avatar", "Set avatar"
    DELETE = "delete", "Delete account"


def _end_sessions(request, user):
    user.revoke_sessions()
    session = getattr(request, "session", None)
    if session is not None:
        session.flush()


def change_nickname(request, user, data) -> Outcome:
    nickname = data["new_nickname"]
    user.nickname = nickname
    user.save(update_fields=["nickname"])
    user_profile_updated.send(sender=type(user), user=user, fields=["nickname"])
    return Outcome(Errno.OK, _("Nickname successfully set to %(nickname)s.") % {"nickname": nickname})


def change_password(request, user, data) -> Outcome:
    if not user.check_password(data["current_password"]):
        return Outcome(Errno.FAILED, _("Wrong password."))

    user.set_password(data["new_password"])
    user.password_changed_at = timezone.now()
    user.save(update_fields=["password", "password_changed_at"])
    _end_sessions(request, user)
    logger.info("User #%s changed password", user.pk)
    return Outcome(Errno.OK, _("Password changed successfully. Please log in again."))


def change_email(request, user, data) -> Outcome:
    if not user.check_password(data["password"]):
        return Outcome(Errno.FAILED, _("Wrong password."))

    new_email = data["new_email"]
    if get_user_model().objects.filter(email__iexact=new_email).exists():
        return Outcome(Errno.FAILED, _("The email address is already taken."))

    user.email = new_email
    user.verified = False
    user.verification_token = ""
    user.save(update_fields=["email", "verified", "verification_token"])
    _end_sessions(request, user)
    logger.info("User #%s changed email", user.pk)
    return Outcome(Errno.OK, _("Email address changed. Please log in again."))


def set_avatar(request, user, data) -> Outcome:
    texture = (
        Texture.objects.filter(pk=data["tid"])
        .filter(Q(public=True) | Q(uploader=user))
        .first()
    )
    if texture is None:
        return Outcome(Errno.FAILED, _("The texture does not exist."))
    if texture.is_cape:
        return Outcome(Errno.FAILED, _("A cape cannot be used as avatar."))

    user.avatar = texture
    user.save(update_fields=["avatar"])
    return Outcome(Errno.OK, _("Avatar updated."), {"tid": texture.pk})


def delete_account(request, user, data) -> Outcome:
    if not user.check_password(data["password"]):
        return Outcome(Errno.FAILED, _("Wrong password."))

    uid = user.pk
    _end_sessions(request, user)
    user.delete()
    logger.info("User #%s deleted their account", uid)
    return Outcome(Errno.OK, _("Your account has been deleted."))


PROFILE_ACTIONS = {
    ProfileAction.NICKNAME: (NicknameSerializer, change_nickname),
    ProfileAction.PASSWORD: (ChangePasswordSerializer, change_password),
    ProfileAction.EMAIL: (ChangeEmailSerializer, change_email),
    ProfileAction.AVATAR: (AvatarSerializer, set_avatar),
    ProfileAction.DELETE: (DeleteAccountSerializer, delete_account),
}


def run_action(action, request, user, payload) -> Outcome:
    if not isinstance(payload, Mapping):
        return Outcome(Errno.FAILED, _("Illegal parameters."))
    serializer_class, handler = PROFILE_ACTIONS[action]
    ser = serializer_class(data=payload)
    if not ser.is_valid():
        return Outcome(Errno.FAILED, first_error(ser.errors))

    try:
        with transaction.atomic():
            return handler(request, user, ser.validated_data)
    except DatabaseError as exc:
        logger.exception("Profile action %s failed for user #%s", action.value, user.pk)
        return Outcome(Errno.OPERATION_FAILED, _("Operation failed: %(error)s") % {"error": exc})


def handle_profile_action(request, user, payload) -> Outcome:
    if not isinstance(payload, Mapping):
        return Outcome(Errno.FAILED, _("Illegal parameters."))
    try:
        action = ProfileAction(payload.get("action"))
    except ValueError:
        return Outcome(Errno.FAILED, _("Illegal parameters."))
    return run_action(action, request, user, payload)
