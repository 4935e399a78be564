"""
users/views.py — Account endpoints & texture library for Skinhost

Purpose
===============================================================================
The authenticated user's corner of the site:
- GET  /user                      → dashboard (profile, score/storage, sign-in state)
- POST /user/sign                 → daily sign-in reward
- POST /user/email-verification   → (re)send the verification mail
- GET  /user/profile              → profile fields
- POST /user/profile              → profile mutation keyed by `action`
- POST /user/profile/avatar       → shortcut for action=avatar
- /api/textures/                  → texture library (own + public textures)

Envelopes
- Everything under /user answers HTTP 200 with {"errno", "msg", ...}; see
  users.envelopes for the codes. The texture API is a plain DRF resource and
  uses status codes with {"detail"} instead.

Options
- Every endpoint reads site options through options.repository and passes the
  repository down to the calculators, so tests can flip an option and see the
  effect on the next request.

Swagger
- Endpoints are tagged "User" and "Textures" in /api/docs.
"""

import logging

from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils.translation import gettext as _
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from options.repository import get_option_repository

from . import signin
from .envelopes import Errno, envelope
from .models import Texture
from .profile import ProfileAction, handle_profile_action, run_action
from .serializers import MeSerializer, TextureSerializer
from .verification import MailThrottle, send_verification_email

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Docs                                                                        #
# --------------------------------------------------------------------------- #

ENVELOPE_SCHEMA = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    required=["errno", "msg"],
    properties={
        "errno": openapi.Schema(type=openapi.TYPE_INTEGER, description="0 = success"),
        "msg": openapi.Schema(type=openapi.TYPE_STRING),
    },
)

STORAGE_SCHEMA = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    properties={
        "percentage": openapi.Schema(type=openapi.TYPE_NUMBER),
        "total": openapi.Schema(type=openapi.TYPE_STRING, description="KB, or UNLIMITED"),
        "used": openapi.Schema(type=openapi.TYPE_INTEGER, description="KB"),
    },
)

SIGN_SCHEMA = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    required=["errno", "msg", "remaining_time"],
    properties={
        "errno": openapi.Schema(type=openapi.TYPE_INTEGER),
        "msg": openapi.Schema(type=openapi.TYPE_STRING),
        "score": openapi.Schema(type=openapi.TYPE_INTEGER, description="New balance (success only)"),
        "storage": STORAGE_SCHEMA,
        "remaining_time": openapi.Schema(type=openapi.TYPE_INTEGER),
        "unit": openapi.Schema(type=openapi.TYPE_STRING, enum=[signin.UNIT_HOUR, signin.UNIT_MINUTE]),
    },
)

PROFILE_REQUEST_SCHEMA = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    required=["action"],
    properties={
        "action": openapi.Schema(type=openapi.TYPE_STRING, enum=ProfileAction.values),
        "new_nickname": openapi.Schema(type=openapi.TYPE_STRING, description="action=nickname"),
        "current_password": openapi.Schema(type=openapi.TYPE_STRING, description="action=password"),
        "new_password": openapi.Schema(type=openapi.TYPE_STRING, description="action=password"),
        "new_email": openapi.Schema(type=openapi.TYPE_STRING, format="email", description="action=email"),
        "password": openapi.Schema(type=openapi.TYPE_STRING, description="action=email / action=delete"),
        "tid": openapi.Schema(type=openapi.TYPE_INTEGER, description="action=avatar"),
    },
)


def _unit_label(unit):
    return _("hours") if unit == signin.UNIT_HOUR else _("minutes")


# --------------------------------------------------------------------------- #
# Dashboard                                                                   #
# --------------------------------------------------------------------------- #

@swagger_auto_schema(
    method="get",
    tags=["User"],
    operation_description="Dashboard data: profile, score/storage statistics and sign-in state.",
    responses={200: "OK", 401: "Unauthorized"},
)
@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def dashboard(request):
    user = request.user
    options = get_option_repository()

    left = signin.remaining_seconds(user.last_sign_at, options)
    remaining_time, unit = signin.quantize_remaining(left)

    notice = None
    if options.get("require_verification") and not user.verified:
        notice = _("Your email address is not verified yet. Please check your inbox.")

    return Response(
        {
            "user": MeSerializer(user).data,
            "statistics": {
                "score": user.score,
                "storage": signin.storage_statistics(user, options),
            },
            "can_sign_in": left <= 0,
            "remaining_time": remaining_time,
            "unit": unit,
            "verification_notice": notice,
            "announcement": options.get("announcement"),
        },
        status=status.HTTP_200_OK,
    )


# --------------------------------------------------------------------------- #
# Sign-in                                                                     #
# --------------------------------------------------------------------------- #

@swagger_auto_schema(
    method="post",
    tags=["User"],
    operation_description=(
        "Collect the daily sign-in reward.\n\n"
        "• Success: `errno=0` with the new `score`, `storage` statistics and hours until the next sign-in.\n"
        "• Cooldown: `errno=1` with `remaining_time` and its `unit` (hour | min)."
    ),
    request_body=None,
    responses={200: openapi.Response("Envelope", SIGN_SCHEMA), 401: "Unauthorized"},
)
@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
def sign(request):
    user = request.user
    options = get_option_repository()

    try:
        result = signin.sign_in(user, options)
    except DatabaseError as exc:
        logger.exception("Sign-in failed for user #%s", user.pk)
        return envelope(_("Operation failed: %(error)s") % {"error": exc}, Errno.OPERATION_FAILED)

    remaining_time, unit = result.remaining
    if not result.ok:
        return envelope(
            _("You can sign in again in %(time)s %(unit)s.") % {"time": remaining_time, "unit": _unit_label(unit)},
            Errno.FAILED,
            remaining_time=remaining_time,
            unit=unit,
        )

    return envelope(
        _("Signed in successfully! You got %(score)s score.") % {"score": result.awarded},
        score=result.score,
        storage=signin.storage_statistics(user, options),
        remaining_time=remaining_time,
        unit=unit,
    )


# --------------------------------------------------------------------------- #
# Email verification                                                          #
# --------------------------------------------------------------------------- #

@swagger_auto_schema(
    method="post",
    tags=["User"],
    operation_description=(
        "Send a verification link to your email address.\n\n"
        "Refused (errno 1) when verification is disabled, when a mail was sent to this "
        "account less than a minute ago, or when the account is already verified. "
        "A mail transport failure answers errno 2."
    ),
    request_body=None,
    responses={200: openapi.Response("Envelope", ENVELOPE_SCHEMA), 401: "Unauthorized"},
)
@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
def email_verification(request):
    return send_verification_email(request.user, MailThrottle(request.user), get_option_repository()).to_response()


# --------------------------------------------------------------------------- #
# Profile                                                                     #
# --------------------------------------------------------------------------- #

@swagger_auto_schema(
    method="get",
    tags=["User"],
    operation_description="Get your profile.",
    responses={200: MeSerializer, 401: "Unauthorized"},
)
@swagger_auto_schema(
    method="post",
    tags=["User"],
    operation_description=(
        "Change your profile. `action` selects the change and the fields it needs:\n\n"
        "• nickname → `new_nickname`\n"
        "• password → `current_password`, `new_password` (logs out every session)\n"
        "• email → `new_email`, `password` (logs out every session)\n"
        "• avatar → `tid`\n"
        "• delete → `password`"
    ),
    request_body=PROFILE_REQUEST_SCHEMA,
    responses={200: openapi.Response("Envelope", ENVELOPE_SCHEMA), 401: "Unauthorized"},
)
@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated])
def profile(request):
    if request.method == "GET":
        return Response(MeSerializer(request.user).data, status=status.HTTP_200_OK)
    return handle_profile_action(request, request.user, request.data).to_response()


@swagger_auto_schema(
    method="post",
    tags=["User"],
    operation_description="Use a skin texture (public, or uploaded by you) as your avatar. Capes are refused.",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        required=["tid"],
        properties={"tid": openapi.Schema(type=openapi.TYPE_INTEGER, description="Texture ID")},
    ),
    responses={200: openapi.Response("Envelope", ENVELOPE_SCHEMA), 401: "Unauthorized"},
)
@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
def avatar(request):
    return run_action(ProfileAction.AVATAR, request, request.user, request.data).to_response()


# --------------------------------------------------------------------------- #
# Texture library                                                             #
# --------------------------------------------------------------------------- #

class TextureViewSet(viewsets.ModelViewSet):
    """
    Textures API
    - Listing:     your own textures plus every public one
    - Filtering:   ?type=steve|alex|cape&public=true|false
    - Search:      ?search=<substring> (name)
    - Ordering:    ?ordering=uploaded_at | -uploaded_at | name | size

    Storage is paid in score: uploading costs size (KB) * score_per_storage,
    deleting your own texture refunds the same amount. Only the uploader may
    change or delete a texture.
    """
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = TextureSerializer
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]
    filterset_fields = ["type", "public"]
    search_fields = ["name"]
    ordering_fields = ["uploaded_at", "name", "size"]
    ordering = ["-uploaded_at"]

    def get_queryset(self):
        return Texture.objects.filter(Q(public=True) | Q(uploader=self.request.user))

    def _ensure_owner(self, texture):
        if texture.uploader_id != self.request.user.pk:
            raise PermissionDenied(_("You can only modify textures you uploaded."))

    def perform_create(self, serializer):
        upload = serializer.validated_data["file"]
        size = TextureSerializer.size_in_kb(upload)
        cost = size * get_option_repository().get("score_per_storage")

        with transaction.atomic():
            user = type(self.request.user).objects.select_for_update().get(pk=self.request.user.pk)
            if user.score < cost:
                raise ValidationError({"detail": _("Not enough score to store this texture (%(cost)s needed).") % {"cost": cost}})
            user.score -= cost
            user.save(update_fields=["score"])
            serializer.save(uploader=user, size=size, hash=TextureSerializer.digest(upload))

        self.request.user.score = user.score
        logger.info("User #%s uploaded texture #%s (%d KB, cost %d)", user.pk, serializer.instance.pk, size, cost)

    def perform_update(self, serializer):
        self._ensure_owner(serializer.instance)
        if "file" in serializer.validated_data:
            raise ValidationError({"detail": _("The file of an uploaded texture cannot be replaced.")})
        texture = serializer.save()
        if texture.is_cape:
            type(self.request.user).objects.filter(avatar=texture).update(avatar=None)

    def perform_destroy(self, instance):
        self._ensure_owner(instance)
        tid, refund = instance.pk, instance.size * get_option_repository().get("score_per_storage")

        with transaction.atomic():
            user = type(self.request.user).objects.select_for_update().get(pk=self.request.user.pk)
            user.score += refund
            user.save(update_fields=["score"])
            instance.file.delete(save=False)
            instance.delete()

        logger.info("User #%s deleted texture #%s (refund %d)", user.pk, tid, refund)

    @swagger_auto_schema(
        tags=["Textures"],
        operation_description="List your textures and every public texture. Filter `?type=`, `?public=`; search `?search=` (name).",
        responses={200: TextureSerializer(many=True), 401: "Unauthorized"},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @swagger_auto_schema(
        tags=["Textures"],
        operation_description="Retrieve a texture (yours or public).",
        responses={200: TextureSerializer, 401: "Unauthorized", 404: "Not Found"},
    )
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)

    @swagger_auto_schema(
        tags=["Textures"],
        operation_description=(
            "Upload a PNG texture (multipart: name, type, public, file). "
            "Costs size (KB) × score_per_storage score; 400 when your balance is too low."
        ),
        responses={201: TextureSerializer, 400: "Bad Request", 401: "Unauthorized"},
    )
    def create(self, request, *args, **kwargs):
        return super().create(request, *args, **kwargs)

    @swagger_auto_schema(
        tags=["Textures"],
        operation_description="Rename a texture or change its type/visibility (uploader only).",
        responses={200: TextureSerializer, 400: "Bad Request", 401: "Unauthorized", 403: "Forbidden", 404: "Not Found"},
    )
    def partial_update(self, request, *args, **kwargs):
        return super().partial_update(request, *args, **kwargs)

    @swagger_auto_schema(
        tags=["Textures"],
        operation_description="Delete a texture you uploaded; its storage cost is refunded.",
        responses={204: "No Content", 401: "Unauthorized", 403: "Forbidden", 404: "Not Found"},
    )
    def destroy(self, request, *args, **kwargs):
        return super().destroy(request, *args, **kwargs)
