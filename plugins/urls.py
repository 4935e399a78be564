"""
plugins/urls.py

Mounted under /api/plugins/ by the root urls.py.
"""
from django.urls import path

from . import views


app_name = "plugins"

urlpatterns = [
    path("", views.plugin_list, name="list"),
    path("market", views.market, name="market"),
    path("<str:name>/enable", views.plugin_enable, name="enable"),
    path("<str:name>/disable", views.plugin_disable, name="disable"),
]
