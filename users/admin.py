"""
users/admin.py — Django Admin configuration for Skinhost

Purpose
===============================================================================
Make the admin useful for moderating accounts and the texture library.

How to read this file (plain English):
- list_display: columns shown in the admin list page (the big table).
- list_filter: right-hand sidebar filters to narrow results without typing.
- search_fields: text search across chosen fields (substring match).
- ordering: default sort order in the list page.

Highlights
- User: email/nickname/score/verified columns, sign-in and credential dates,
  password handled by Django's auth forms. Uploaded textures are listed inline
  (view-only, each row links to its Texture page).
- Texture: type/visibility filters, uploader column linking to the uploads of
  that user, computed storage cost using the current score_per_storage.
- "Revoke sessions" action: logs the selected users out everywhere.
"""

from urllib.parse import urlencode

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.urls import reverse
from django.utils.html import format_html

from options.repository import get_option_repository

from .models import Texture, User


# ----------------------------------------------------------------------------- #
# Inline (view-only) textures on the User page                                   #
# ----------------------------------------------------------------------------- #
class TextureInline(admin.TabularInline):
    model = Texture
    fk_name = "uploader"
    extra = 0
    can_delete = False
    show_change_link = False
    fields = ("name", "type", "size", "public", "change_link")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    @admin.display(description="")
    def change_link(self, obj):
        if not obj.pk:
            return ""
        url = reverse("admin:users_texture_change", args=[obj.pk])
        return format_html('<a href="{}">Change</a>', url)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("email", "nickname", "score", "verified", "is_staff", "last_sign_at", "date_joined")
    list_filter = ("verified", "is_staff", "is_superuser", "is_active")
    search_fields = ("email", "nickname", "=id")
    ordering = ("id",)
    readonly_fields = ("last_login", "date_joined", "last_sign_at", "password_changed_at", "session_version")
    inlines = [TextureInline]
    actions = ["revoke_sessions"]

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("nickname", "score", "avatar", "verified")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        ("Activity", {"fields": ("last_login", "date_joined", "last_sign_at", "password_changed_at", "session_version")}),
    )
    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("email", "nickname", "password1", "password2"),
        }),
    )

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)
        # Only skins can be avatars.
        if "avatar" in form.base_fields:
            form.base_fields["avatar"].queryset = Texture.objects.exclude(type=Texture.Type.CAPE)
        return form

    @admin.action(description="Revoke sessions (log out everywhere)")
    def revoke_sessions(self, request, queryset):
        for user in queryset:
            user.revoke_sessions()
        self.message_user(request, f"Revoked sessions of {queryset.count()} user(s).")


@admin.register(Texture)
class TextureAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "public", "size", "storage_cost", "uploader_link", "uploaded_at")
    list_filter = ("type", "public", "uploaded_at")
    search_fields = ("name", "hash", "uploader__email", "uploader__nickname", "=id")
    ordering = ("-uploaded_at",)
    readonly_fields = ("hash", "size", "uploaded_at")

    @admin.display(description="Cost (score)")
    def storage_cost(self, obj):
        return obj.size * get_option_repository().get("score_per_storage")

    @admin.display(description="Uploader", ordering="uploader__email")
    def uploader_link(self, obj):
        if not obj.uploader_id:
            return "-"
        url = reverse("admin:users_texture_changelist") + "?" + urlencode({"uploader__id__exact": obj.uploader_id})
        return format_html('<a href="{}">{}</a>', url, obj.uploader.email)
