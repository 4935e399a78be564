"""
options/views.py — Setup wizard endpoints (install + update)

Endpoints
- GET  /setup         → {"installed", "version", "app_version"}
- POST /setup         → install: migrate, record version, create the first admin
- GET  /setup/update  → {"outdated", "version", "app_version"}
- POST /setup/update  → migrate and bump the stored version to APP_VERSION

These run before any account exists, so they are public and skip JWT auth.
Each POST is refused when there is nothing to do (already installed / already
up to date), which keeps them harmless on a live site.
"""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework import permissions, serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_yasg.utils import swagger_auto_schema

from .installation import is_outdated, tables_exist
from .repository import get_option_repository

logger = logging.getLogger(__name__)


class SetupSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, max_length=32, write_only=True, trim_whitespace=False)
    nickname = serializers.CharField(max_length=255)
    site_name = serializers.CharField(max_length=255, required=False)


def _migrate():
    call_command("migrate", interactive=False, verbosity=0)


class SetupView(APIView):
    """Install the application on an empty database."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @swagger_auto_schema(tags=["Setup"], operation_description="Report whether the schema is installed.")
    def get(self, request):
        installed = tables_exist()
        version = get_option_repository().reload().get("version") if installed else None
        return Response(
            {"installed": installed, "version": version, "app_version": settings.APP_VERSION},
            status=status.HTTP_200_OK,
        )

    @swagger_auto_schema(
        tags=["Setup"],
        operation_description="Run migrations and create the first (admin) account.",
        request_body=SetupSerializer,
        responses={201: "Installed", 400: "Already installed / invalid input"},
    )
    def post(self, request):
        if tables_exist():
            return Response({"detail": "Already installed."}, status=status.HTTP_400_BAD_REQUEST)

        ser = SetupSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        _migrate()

        options = get_option_repository().reload()
        options.set("version", settings.APP_VERSION)
        if ser.validated_data.get("site_name"):
            options.set("site_name", ser.validated_data["site_name"])

        admin = get_user_model().objects.create_superuser(
            email=ser.validated_data["email"],
            password=ser.validated_data["password"],
            nickname=ser.validated_data["nickname"],
            score=options.get("user_initial_score"),
            verified=True,
        )
        logger.info("Installed version %s; first admin is user #%s", settings.APP_VERSION, admin.pk)
        return Response(
            {"detail": "Installed.", "version": settings.APP_VERSION, "admin": admin.email},
            status=status.HTTP_201_CREATED,
        )


class UpdateView(APIView):
    """Bring the schema and stored version up to the running application."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @swagger_auto_schema(tags=["Setup"], operation_description="Report whether an update is pending.")
    def get(self, request):
        version = get_option_repository().reload().get("version")
        return Response(
            {"outdated": is_outdated(version), "version": version, "app_version": settings.APP_VERSION},
            status=status.HTTP_200_OK,
        )

    @swagger_auto_schema(
        tags=["Setup"],
        operation_description="Run pending migrations and record APP_VERSION.",
        request_body=None,
        responses={200: "Updated", 400: "Already up to date"},
    )
    def post(self, request):
        options = get_option_repository().reload()
        previous = options.get("version")
        if not is_outdated(previous):
            return Response({"detail": "Already up to date."}, status=status.HTTP_400_BAD_REQUEST)

        _migrate()
        options.set("version", settings.APP_VERSION)
        logger.info("Updated from %s to %s", previous or "<none>", settings.APP_VERSION)
        return Response(
            {"detail": "Updated.", "previous": previous, "version": settings.APP_VERSION},
            status=status.HTTP_200_OK,
        )
