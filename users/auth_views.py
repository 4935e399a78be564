"""
users/auth_views.py — JWT auth endpoints for Skinhost


Purpose
===============================================================================
Identity & credential endpoints, grouped under the "Auth" tag in /api/docs:
- Register (email + password + nickname; closed when user_can_register is off)
- Login (JWT pair carrying the session version)
- Refresh (via SimpleJWT)
- Logout (blacklist a submitted refresh token)
- Verify (the link sent by users.verification)


Endpoints (wired in root urls.py)
- POST /auth/register   → 201 {"id", "email", "nickname"}
- POST /auth/login      → {"access", "refresh", "email", "nickname"}
- POST /auth/refresh    → {"access"}
- POST /auth/logout     → 205, refresh token blacklisted (owner-checked)
- GET  /auth/verify?uid=<id>&token=<token> → envelope {"errno", "msg"}


Security Notes
- Logout and session revocation need the SimpleJWT blacklist tables
  ('rest_framework_simplejwt.token_blacklist' in INSTALLED_APPS, migrated).
- Access tokens minted before a password/email change are refused by
  users.authentication.SessionVersionJWTAuthentication.
"""
import logging

from django.contrib.auth import get_user_model
from django.utils.translation import gettext as _
from rest_framework import permissions, serializers, status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.views import TokenRefreshView as _TokenRefreshView

from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from options.repository import get_option_repository

from .envelopes import first_error
from .serializers import EmailTokenObtainPairSerializer, RegisterSerializer
from .verification import confirm_verification

logger = logging.getLogger(__name__)

User = get_user_model()


# ---------------------------------------------------------------------------
# Common response schemas for docs
# ---------------------------------------------------------------------------
TOKENS_PAIR_SCHEMA = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    required=["access", "refresh"],
    properties={
        "access": openapi.Schema(type=openapi.TYPE_STRING, description="Access JWT"),
        "refresh": openapi.Schema(type=openapi.TYPE_STRING, description="Refresh JWT"),
        "email": openapi.Schema(type=openapi.TYPE_STRING, format="email", description="User email"),
        "nickname": openapi.Schema(type=openapi.TYPE_STRING, description="Nickname for UI display"),
    },
)
ACCESS_ONLY_SCHEMA = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    properties={
        "access": openapi.Schema(type=openapi.TYPE_STRING, description="New access JWT"),
    },
)


# ---------------------------------------------------------------------------
# Login (email + password) → JWT pair
# ---------------------------------------------------------------------------
class LoginDocSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})


class EmailTokenObtainPairView(TokenObtainPairView):
    """POST /auth/login — Returns refresh & access JWTs."""
    serializer_class = EmailTokenObtainPairSerializer

    @swagger_auto_schema(
        tags=["Auth"],
        operation_description="Log in with **email** and **password**.",
        request_body=LoginDocSerializer,
        security=[],
        responses={
            200: openapi.Response("JWT pair", TOKENS_PAIR_SCHEMA),
            400: "Bad Request",
            401: "Invalid credentials",
        },
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


# ---------------------------------------------------------------------------
# Refresh access token
# ---------------------------------------------------------------------------
class TokenRefreshTaggedView(_TokenRefreshView):
    """POST /auth/refresh — Exchange refresh for a new access token."""
    @swagger_auto_schema(
        tags=["Auth"],
        operation_description="Refresh access token using a refresh JWT.",
        security=[],
        responses={
            200: openapi.Response("New access token", ACCESS_ONLY_SCHEMA),
            400: "Bad Request",
            401: "Invalid or blacklisted refresh token",
        },
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------
@swagger_auto_schema(
    method="post",
    tags=["Auth"],
    operation_description=(
        "Register a new account with email, password (8–32 characters) and nickname.\n\n"
        "The account starts with the `user_initial_score` balance. Refused when "
        "registration is closed (`user_can_register` option)."
    ),
    request_body=RegisterSerializer,
    responses={201: "User Created", 400: "Invalid Input", 403: "Registration closed"},
    security=[],
)
@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def register(request):
    options = get_option_repository()
    if not options.get("user_can_register"):
        return Response({"detail": _("Registration is closed.")}, status=status.HTTP_403_FORBIDDEN)

    ser = RegisterSerializer(data=request.data)
    if not ser.is_valid():
        return Response({"detail": first_error(ser.errors)}, status=status.HTTP_400_BAD_REQUEST)

    user = User.objects.create_user(
        email=ser.validated_data["email"],
        password=ser.validated_data["password"],
        nickname=ser.validated_data["nickname"],
        score=options.get("user_initial_score"),
    )
    logger.info("Registered user #%s", user.pk)
    return Response({"id": user.id, "email": user.email, "nickname": user.nickname}, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# Logout (blacklist refresh token)
# ---------------------------------------------------------------------------
logout_request_schema = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    required=["refresh"],
    properties={"refresh": openapi.Schema(type=openapi.TYPE_STRING, description="Refresh token to blacklist")},
)


@swagger_auto_schema(
    method="post",
    tags=["Auth"],
    operation_description=(
        "Blacklist a submitted refresh token to invalidate future use.\n\n"
        "**Ownership check**: the submitted token must belong to the authenticated caller."
    ),
    request_body=logout_request_schema,
    responses={
        205: "Reset Content",
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
    },
)
@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
def logout(request):
    """
    POST /auth/logout
    Body: { "refresh": "<refresh_token>" }

    The token must belong to the caller; it is blacklisted and the server-side
    session (verification mail throttle) is flushed.
    """
    refresh_token = request.data.get("refresh")
    if not refresh_token:
        return Response({"detail": "refresh token is required"}, status=status.HTTP_400_BAD_REQUEST)

    try:
        token = RefreshToken(refresh_token)
        if str(token.get("user_id")) != str(request.user.pk):
            return Response({"detail": "token does not belong to you"}, status=status.HTTP_403_FORBIDDEN)
        token.blacklist()
    except TokenError:
        return Response({"detail": "Invalid refresh token."}, status=status.HTTP_400_BAD_REQUEST)

    request.session.flush()
    return Response({"detail": "Logged out."}, status=status.HTTP_205_RESET_CONTENT)


# ---------------------------------------------------------------------------
# Verify (link from the verification mail)
# ---------------------------------------------------------------------------
@swagger_auto_schema(
    method="get",
    tags=["Auth"],
    operation_description="Confirm an email address with the `uid` and `token` from the verification mail.",
    manual_parameters=[
        openapi.Parameter("uid", openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=True),
        openapi.Parameter("token", openapi.IN_QUERY, type=openapi.TYPE_STRING, required=True),
    ],
    responses={200: "Envelope"},
    security=[],
)
@api_view(["GET"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def verify_email(request):
    uid = request.query_params.get("uid", "")
    user = User.objects.filter(pk=int(uid)).first() if uid.isdigit() else None
    return confirm_verification(user, request.query_params.get("token"), get_option_repository()).to_response()
