"""
serializers.py — DRF serializers for Skinhost accounts


Purpose
===============================================================================
Convert users/textures to JSON and validate every incoming account payload.

Principles
- One serializer per profile action (nickname / password / email / avatar /
  delete). Each carries exactly the fields its action needs, so the dispatch
  in users.profile only ever sees validated, typed data.
- Messages name the field the way the UI labels it ("new nickname",
  "current password") and are translatable.
- Fields are declared in the order they are checked: the first failing field
  decides the error message returned in the envelope.
- Passwords and nicknames are never whitespace-trimmed; a trailing space in a
  nickname is rejected as a special character instead.
"""

import hashlib
import math

from django.contrib.auth import get_user_model
from django.utils.functional import lazy
from django.utils.translation import gettext, gettext_noop
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .authentication import issue_tokens
from .models import Texture

User = get_user_model()


# --------------------------------------------------------------------------- #
# Small helpers                                                               #
# --------------------------------------------------------------------------- #

SPECIAL_CHARS = set("'\"\\<>&\0")


def _label(template: str, attribute: str) -> str:
    return gettext(template) % {"attribute": attribute}


# Translated when rendered (per request language), not at import time.
label = lazy(_label, str)


def _messages(attribute: str) -> dict:
    """Error messages for a field labelled `attribute`; DRF fills {min_length}/{max_length}."""
    required = label(gettext_noop("The %(attribute)s field is required."), attribute)
    return {
        "required": required,
        "blank": required,
        "null": required,
        "min_length": label(gettext_noop("The %(attribute)s must be at least {min_length} characters."), attribute),
        "max_length": label(gettext_noop("The %(attribute)s may not be greater than {max_length} characters."), attribute),
        "invalid": label(gettext_noop("The %(attribute)s must be a valid email address."), attribute),
    }


def no_special_chars(attribute: str):
    def validator(value):
        if value != value.strip() or SPECIAL_CHARS.intersection(value):
            raise serializers.ValidationError(
                _label(gettext_noop("The %(attribute)s must not contain special characters."), attribute)
            )
    return validator


def password_field(attribute: str, min_length: int = 6):
    return serializers.CharField(
        min_length=min_length, max_length=32, trim_whitespace=False, write_only=True,
        error_messages=_messages(attribute),
    )


def nickname_field(attribute: str):
    return serializers.CharField(
        max_length=255, trim_whitespace=False,
        validators=[no_special_chars(attribute)],
        error_messages=_messages(attribute),
    )


# --------------------------------------------------------------------------- #
# Profile (read) / register / login                                           #
# --------------------------------------------------------------------------- #

class MeSerializer(serializers.ModelSerializer):
    avatar = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "nickname",
            "score",
            "avatar",
            "verified",
            "last_sign_at",
            "date_joined",
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=100, error_messages=_messages("email"))
    password = password_field("password", min_length=8)
    nickname = nickname_field("nickname")

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(_("The email address is already registered."))
        return value


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Login with email + password. Emails are matched case-insensitively (stored
    lower-case) and the issued pair carries the session version claim.
    """

    @classmethod
    def get_token(cls, user):
        return issue_tokens(user)

    def validate(self, attrs):
        attrs[self.username_field] = (attrs.get(self.username_field) or "").strip().lower()
        data = super().validate(attrs)
        data["email"] = self.user.email
        data["nickname"] = self.user.nickname
        return data


# --------------------------------------------------------------------------- #
# Profile actions                                                             #
# --------------------------------------------------------------------------- #

class NicknameSerializer(serializers.Serializer):
    new_nickname = nickname_field("new nickname")


class ChangePasswordSerializer(serializers.Serializer):
    current_password = password_field("current password")
    new_password = password_field("new password", min_length=8)


class ChangeEmailSerializer(serializers.Serializer):
    new_email = serializers.EmailField(max_length=100, error_messages=_messages("new email"))
    password = password_field("password")

    def validate_new_email(self, value):
        return value.strip().lower()


class AvatarSerializer(serializers.Serializer):
    tid = serializers.IntegerField(
        error_messages={
            **_messages("tid"),
            "invalid": label(gettext_noop("The %(attribute)s must be an integer."), "tid"),
        },
    )


class DeleteAccountSerializer(serializers.Serializer):
    password = password_field("password")


# --------------------------------------------------------------------------- #
# Texture                                                                     #
# --------------------------------------------------------------------------- #

class TextureSerializer(serializers.ModelSerializer):
    tid = serializers.IntegerField(source="id", read_only=True)
    uploader = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Texture
        fields = [
            "tid",
            "name",
            "type",
            "public",
            "file",
            "hash",
            "size",
            "uploader",
            "uploaded_at",
        ]
        read_only_fields = ("tid", "hash", "size", "uploader", "uploaded_at")
        extra_kwargs = {
            "file": {"required": True, "allow_empty_file": False},
        }

    @staticmethod
    def size_in_kb(upload) -> int:
        return max(1, math.ceil(upload.size / 1024))

    @staticmethod
    def digest(upload) -> str:
        sha = hashlib.sha256()
        for chunk in upload.chunks():
            sha.update(chunk)
        upload.seek(0)
        return sha.hexdigest()
