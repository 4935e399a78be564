"""
options/urls.py

Setup wizard routes. Kept outside the installation gate (the gate exempts /setup).
"""
from django.urls import path

from .views import SetupView, UpdateView


app_name = "options"

urlpatterns = [
    path("setup", SetupView.as_view(), name="setup"),
    path("setup/update", UpdateView.as_view(), name="setup-update"),
]
