"""
models.py — Account domain models for Skinhost


Purpose
===============================================================================
- User: the account. Email is the login identifier; the record also carries
  the score balance, the avatar choice, email verification state, the last
  daily sign-in and credential-change bookkeeping.
- Texture: an uploaded skin ("steve"/"alex" model) or cape. Textures cost
  score per KB while stored; a skin texture can be picked as the avatar.


Auth model
- Custom user model (settings.AUTH_USER_MODEL = "users.User") built on
  AbstractBaseUser + PermissionsMixin so staff/superuser flags keep working in
  the admin.
- Emails are stored lower-case; uniqueness is therefore case-insensitive.


Sessions / tokens
- session_version is embedded into every JWT we issue. revoke_sessions()
  bumps it (making outstanding access tokens useless) and blacklists every
  outstanding refresh token, which forces a fresh login after a password or
  email change.


Design notes
- score is a plain integer. It is only ever added to (sign-in) or charged for
  storage; it is not clamped at the database level.
- Storage usage is the total size (KB) of the textures the user uploaded.
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.core.validators import FileExtensionValidator
from django.db import models
from django.db.models import Sum
from django.utils import timezone


def validate_texture_size(f):
    max_bytes = 1024 * 1024
    if f and getattr(f, "size", 0) > max_bytes:
        raise ValidationError("Texture file too large (max 1 MB).")


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The email address must be set.")
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self._create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    email = models.EmailField(max_length=100, unique=True, help_text="Login identifier (stored lower-case).")
    nickname = models.CharField(max_length=255, blank=True, default="", help_text="Display name.")
    score = models.IntegerField(default=0, help_text="Score balance (sign-in rewards minus storage charges).")
    avatar = models.ForeignKey(
        "Texture", on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
        help_text="Skin texture used as avatar (never a cape).",
    )

    verified = models.BooleanField(default=False, help_text="Email address confirmed?")
    verification_token = models.CharField(max_length=64, blank=True, default="")

    last_sign_at = models.DateTimeField(null=True, blank=True, help_text="Last daily sign-in.")
    password_changed_at = models.DateTimeField(null=True, blank=True)
    session_version = models.PositiveIntegerField(
        default=0, help_text="Embedded in issued tokens; bumping it logs the user out everywhere.",
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False, help_text="Can log into the admin site.")
    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["nickname"]

    class Meta:
        ordering = ["id"]
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.nickname or '-'} <{self.email}>"

    @property
    def storage_used(self) -> int:
        """Total KB of textures uploaded by this user."""
        return self.textures.aggregate(total=Sum("size"))["total"] or 0

    def revoke_sessions(self):
        """Invalidate every token issued so far (access and refresh)."""
        from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

        self.session_version += 1
        self.save(update_fields=["session_version"])
        for outstanding in OutstandingToken.objects.filter(user=self):
            BlacklistedToken.objects.get_or_create(token=outstanding)


class Texture(models.Model):
    class Type(models.TextChoices):
        STEVE = "steve", "Skin (Steve model)"
        ALEX = "alex", "Skin (Alex model)"
        CAPE = "cape", "Cape"

    name = models.CharField(max_length=50, help_text="Texture name shown in the library.")
    type = models.CharField(max_length=10, choices=Type.choices, default=Type.STEVE, db_index=True)
    hash = models.CharField(max_length=64, blank=True, default="", db_index=True, help_text="sha256 of the file.")
    size = models.PositiveIntegerField(default=0, help_text="File size in KB.")
    uploader = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="textures", help_text="User who uploaded (and pays storage for) this texture.",
    )
    public = models.BooleanField(default=True, help_text="Visible to every user?")
    file = models.FileField(
        upload_to="textures/", blank=True,
        validators=[FileExtensionValidator(allowed_extensions=["png"]), validate_texture_size],
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-uploaded_at"]
        verbose_name = "Texture"
        verbose_name_plural = "Textures"

    def __str__(self):
        return f"#{self.pk} {self.name} ({self.type})"

    @property
    def is_cape(self) -> bool:
        return self.type == self.Type.CAPE
