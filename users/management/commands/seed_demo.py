"""
Management command: seed_demo
-----------------------------

Purpose:
    Creates a demo user and a couple of public textures so that a fresh
    database can be quickly populated for demos, dev testing, or onboarding.

Behavior:
    - Idempotent: uses get_or_create so running it multiple times will not
      create duplicate rows.
    - Demo user: demo@skinhost.dev / pass1234 (verified, initial score)
    - Adds one Steve skin (set as the demo avatar) and one cape.
    - Turns the daily sign-in on with a fixed 50 point reward.

Usage:
    python manage.py seed_demo

Notes:
    * Texture rows carry placeholder hashes and no file; they exist to
      exercise the avatar and library endpoints.
    * Not used in CI (tests create their own data).
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from options.repository import get_option_repository
from users.models import Texture


class Command(BaseCommand):
    help = "Create demo user, sample textures and sign-in options (idempotent)."

    def handle(self, *args, **options):
        User = get_user_model()
        site = get_option_repository()

        user, created = User.objects.get_or_create(
            email="demo@skinhost.dev",
            defaults={
                "nickname": "Demo",
                "score": site.get("user_initial_score"),
                "verified": True,
            },
        )
        if created:
            user.set_password("pass1234")
            user.save()
            self.stdout.write(self.style.SUCCESS("Created demo user demo@skinhost.dev / pass1234"))
        else:
            self.stdout.write("Demo user already exists.")

        skin, _ = Texture.objects.get_or_create(
            uploader=user,
            name="Demo Steve",
            defaults={"type": Texture.Type.STEVE, "public": True, "size": 2, "hash": "demo-steve"},
        )
        Texture.objects.get_or_create(
            uploader=user,
            name="Demo Cape",
            defaults={"type": Texture.Type.CAPE, "public": True, "size": 1, "hash": "demo-cape"},
        )

        if user.avatar_id is None:
            user.avatar = skin
            user.save(update_fields=["avatar"])

        site.set("sign_score", "50,50")

        self.stdout.write(self.style.SUCCESS("Seeded demo textures and sign-in options."))
