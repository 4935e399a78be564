"""
options/admin.py

Edit site options from the admin. Saving or deleting a row reloads the
process-wide repository so the change applies without a restart.
"""
from django.contrib import admin

from .models import Option
from .repository import get_option_repository


@admin.register(Option)
class OptionAdmin(admin.ModelAdmin):
    list_display = ("name", "value")
    search_fields = ("name", "value")
    ordering = ("name",)

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        get_option_repository().reload()

    def delete_model(self, request, obj):
        super().delete_model(request, obj)
        get_option_repository().reload()
