"""
urls.py — Root URL configuration for Skinhost Backend

Purpose
===============================================================================
- Wire Django admin, the texture router and the account endpoints.
- Setup wizard (/setup, /setup/update) from the options app.
- Plugin management (/api/plugins/...) from the plugins app.
- JWT auth endpoints (register, login, refresh, logout, verify).
- Serve media files and plugin assets in development.
- Interactive API docs:
    * /api/docs/   → Swagger UI
    * /api/schema/ → OpenAPI JSON (machine-readable)

Notes
- /user* endpoints answer {"errno", "msg", ...} envelopes (see users.envelopes).
- Auth views are centralized in users.auth_views.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.shortcuts import redirect
from django.urls import include, path
from rest_framework import permissions, routers

from drf_yasg import openapi
from drf_yasg.views import get_schema_view

from users import views
from users.auth_views import (
    EmailTokenObtainPairView,
    TokenRefreshTaggedView,
    logout as jwt_logout,
    register,
    verify_email,
)

# ----------------------------------------------------------------------------- #
# DRF Routers (ViewSets → automatic CRUD endpoints)                             #
# ----------------------------------------------------------------------------- #
router = routers.DefaultRouter()
router.register(r"textures", views.TextureViewSet, basename="texture")

# ----------------------------------------------------------------------------- #
# API Docs (Swagger/OpenAPI via drf-yasg)                                       #
# ----------------------------------------------------------------------------- #
schema_view = get_schema_view(
    openapi.Info(
        title="Skinhost API",
        default_version="v1",
        description=(
            "Interactive API documentation for Skinhost. "
            "Auth uses JWT (Bearer) tokens. Click 'Authorize' and paste: Bearer <ACCESS_TOKEN>. "
            "Account endpoints under /user answer {errno, msg} envelopes (errno 0 = success)."
        ),
    ),
    public=True,
    permission_classes=[permissions.AllowAny],
)

# ----------------------------------------------------------------------------- #
# URL Patterns                                                                  #
# ----------------------------------------------------------------------------- #
urlpatterns = [
    path("", lambda r: redirect(settings.FRONTEND_URL), name="root-redirect"),

    path("admin/", admin.site.urls),

    # Setup wizard
    path("", include("options.urls", namespace="options")),

    # Auth (JWT)
    path("auth/register", register,                           name="register"),
    path("auth/login",    EmailTokenObtainPairView.as_view(), name="auth_login"),
    path("auth/refresh",  TokenRefreshTaggedView.as_view(),   name="auth_refresh"),
    path("auth/logout",   jwt_logout,                         name="logout"),
    path("auth/verify",   verify_email,                       name="verify_email"),

    # Account
    path("user",                    views.dashboard,          name="user-dashboard"),
    path("user/sign",               views.sign,               name="user-sign"),
    path("user/email-verification", views.email_verification, name="user-email-verification"),
    path("user/profile",            views.profile,            name="user-profile"),
    path("user/profile/avatar",     views.avatar,             name="user-avatar"),

    # API (ViewSets) + plugins
    path("api/", include(router.urls)),
    path("api/plugins/", include("plugins.urls", namespace="plugins")),

    # API docs
    path("api/docs/",   schema_view.with_ui("swagger", cache_timeout=0), name="api-docs-swagger"),
    path("api/schema/", schema_view.without_ui(cache_timeout=0),         name="openapi-schema"),
]

# Dev-only media / plugin asset serving
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += static(settings.PLUGINS["url"].rstrip("/") + "/", document_root=settings.PLUGINS["directory"])
