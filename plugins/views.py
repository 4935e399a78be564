"""
plugins/views.py — Staff-only plugin management endpoints

- GET  /api/plugins/               → installed plugins with their enabled state
- POST /api/plugins/<name>/enable  → add to plugins_enabled (bootstraps it now)
- POST /api/plugins/<name>/disable → remove from plugins_enabled
- GET  /api/plugins/market         → registry entries annotated with install state;
                                     envelope errno 2 when the registry is unreachable
"""

import logging

from django.utils.translation import gettext as _
from drf_yasg.utils import swagger_auto_schema
from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from users.envelopes import Errno, envelope

from .manager import PluginError, get_plugin_manager
from .market import MarketError, market_packages

logger = logging.getLogger(__name__)


def _describe(manager, plugin) -> dict:
    return {
        "name": plugin.name,
        "version": plugin.version,
        "title": plugin.title,
        "description": plugin.description,
        "author": plugin.author,
        "enabled": manager.is_enabled(plugin.name),
        "booted": plugin.name in manager.booted_plugins,
        "assets": manager.assets_url(plugin.name),
    }


@swagger_auto_schema(
    method="get",
    tags=["Plugins"],
    operation_description="List installed plugins (staff only).",
    responses={200: "OK", 401: "Unauthorized", 403: "Forbidden"},
)
@api_view(["GET"])
@permission_classes([permissions.IsAdminUser])
def plugin_list(request):
    manager = get_plugin_manager()
    manager.discover()
    return Response([_describe(manager, p) for p in manager.all().values()], status=status.HTTP_200_OK)


def _toggle(name, enable):
    manager = get_plugin_manager()
    manager.discover()
    try:
        plugin = manager.enable(name) if enable else manager.disable(name)
    except PluginError:
        return Response({"detail": _("Plugin not found.")}, status=status.HTTP_404_NOT_FOUND)
    return Response(_describe(manager, plugin), status=status.HTTP_200_OK)


@swagger_auto_schema(
    method="post",
    tags=["Plugins"],
    operation_description="Enable an installed plugin; its bootstrap runs immediately.",
    request_body=None,
    responses={200: "OK", 403: "Forbidden", 404: "Not Found"},
)
@api_view(["POST"])
@permission_classes([permissions.IsAdminUser])
def plugin_enable(request, name):
    return _toggle(name, enable=True)


@swagger_auto_schema(
    method="post",
    tags=["Plugins"],
    operation_description="Disable a plugin. It stops booting from the next process start.",
    request_body=None,
    responses={200: "OK", 403: "Forbidden", 404: "Not Found"},
)
@api_view(["POST"])
@permission_classes([permissions.IsAdminUser])
def plugin_disable(request, name):
    return _toggle(name, enable=False)


@swagger_auto_schema(
    method="get",
    tags=["Plugins"],
    operation_description=(
        "Plugins available from the market registry. Each entry carries `installed` "
        "(local version or false) and `update_available`."
    ),
    responses={200: "Envelope with `packages`", 403: "Forbidden"},
)
@api_view(["GET"])
@permission_classes([permissions.IsAdminUser])
def market(request):
    manager = get_plugin_manager()
    manager.discover()
    try:
        packages = market_packages(manager)
    except MarketError as exc:
        return envelope(_("Unable to reach the plugin market: %(msg)s") % {"msg": exc}, Errno.TRANSPORT_FAILED)
    return envelope("ok", packages=packages)
