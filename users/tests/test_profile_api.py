from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from rest_framework import status
from rest_framework.test import APIClient

from users.models import Texture
from users.signals import user_profile_updated

from .base import AccountAPITestCase


User = get_user_model()


class ProfileActionTests(AccountAPITestCase):
    def post(self, payload, client=None):
        return (client or self.client).post("/user/profile", payload, format="json")

    def test_illegal_action(self):
        self.assertEnvelope(self.post({}), 1, "Illegal parameters.")
        self.assertEnvelope(self.post({"action": "teleport"}), 1, "Illegal parameters.")

    def test_body_must_be_an_object(self):
        self.assertEnvelope(self.post(["nickname"]), 1, "Illegal parameters.")
        self.assertEnvelope(self.post("nickname"), 1, "Illegal parameters.")
        self.assertEqual(self.client.get("/user/profile").data["nickname"], "me")

    # -----------------------
    # nickname
    # -----------------------
    def test_nickname_validation(self):
        self.assertEnvelope(self.post({"action": "nickname"}), 1, "The new nickname field is required.")
        self.assertEnvelope(
            self.post({"action": "nickname", "new_nickname": "\\"}), 1,
            "The new nickname must not contain special characters.",
        )
        self.assertEnvelope(
            self.post({"action": "nickname", "new_nickname": " padded"}), 1,
            "The new nickname must not contain special characters.",
        )
        self.assertEnvelope(
            self.post({"action": "nickname", "new_nickname": "x" * 256}), 1,
            "The new nickname may not be greater than 255 characters.",
        )

    def test_nickname_success_emits_signal_once(self):
        receiver = mock.Mock()
        user_profile_updated.connect(receiver)
        self.addCleanup(user_profile_updated.disconnect, receiver)

        r = self.post({"action": "nickname", "new_nickname": "nickname"})
        self.assertEnvelope(r, 0, "Nickname successfully set to nickname.")
        self.assertEqual(User.objects.get(pk=self.user.pk).nickname, "nickname")
        receiver.assert_called_once()
        self.assertEqual(receiver.call_args.kwargs["fields"], ["nickname"])

    # -----------------------
    # password
    # -----------------------
    def test_password_validation(self):
        self.assertEnvelope(self.post({"action": "password"}), 1, "The current password field is required.")
        self.assertEnvelope(
            self.post({"action": "password", "current_password": "1", "new_password": "12345678"}), 1,
            "The current password must be at least 6 characters.",
        )
        self.assertEnvelope(
            self.post({"action": "password", "current_password": "x" * 33, "new_password": "12345678"}), 1,
            "The current password may not be greater than 32 characters.",
        )
        self.assertEnvelope(
            self.post({"action": "password", "current_password": self.PASSWORD, "new_password": "1"}), 1,
            "The new password must be at least 8 characters.",
        )
        self.assertEnvelope(
            self.post({"action": "password", "current_password": self.PASSWORD, "new_password": "x" * 33}), 1,
            "The new password may not be greater than 32 characters.",
        )
        self.assertEnvelope(
            self.post({"action": "password", "current_password": "1234567", "new_password": "87654321"}), 1,
            "Wrong password.",
        )

    def test_password_success_logs_out_everywhere(self):
        other_device, _ = self.auth_client("me@example.com", self.PASSWORD)

        r = self.post({"action": "password", "current_password": self.PASSWORD, "new_password": "87654321"})
        self.assertEnvelope(r, 0, "Password changed successfully. Please log in again.")

        user = User.objects.get(pk=self.user.pk)
        self.assertTrue(user.check_password("87654321"))
        self.assertIsNotNone(user.password_changed_at)

        # Old access tokens no longer authenticate, on any device
        self.assertEqual(self.client.get("/user").status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(other_device.get("/user").status_code, status.HTTP_401_UNAUTHORIZED)
        # Old refresh token is blacklisted
        r = APIClient().post("/auth/refresh", {"refresh": self.refresh}, format="json")
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        # The new password works
        fresh, _ = self.auth_client("me@example.com", "87654321")
        self.assertEqual(fresh.get("/user").status_code, status.HTTP_200_OK)

    # -----------------------
    # email
    # -----------------------
    def test_email_validation(self):
        User.objects.create_user(email="taken@example.com", password=self.PASSWORD)

        self.assertEnvelope(self.post({"action": "email"}), 1, "The new email field is required.")
        self.assertEnvelope(
            self.post({"action": "email", "new_email": "not_an_email"}), 1,
            "The new email must be a valid email address.",
        )
        self.assertEnvelope(
            self.post({"action": "email", "new_email": "new@example.com", "password": "1"}), 1,
            "The password must be at least 6 characters.",
        )
        self.assertEnvelope(
            self.post({"action": "email", "new_email": "new@example.com", "password": "x" * 33}), 1,
            "The password may not be greater than 32 characters.",
        )
        self.assertEnvelope(
            self.post({"action": "email", "new_email": "TAKEN@example.com", "password": self.PASSWORD}), 1,
            "The email address is already taken.",
        )
        self.assertEnvelope(
            self.post({"action": "email", "new_email": "new@example.com", "password": "7654321"}), 1,
            "Wrong password.",
        )

    def test_wrong_password_checked_before_collision(self):
        User.objects.create_user(email="taken@example.com", password=self.PASSWORD)
        r = self.post({"action": "email", "new_email": "taken@example.com", "password": "7654321"})
        self.assertEnvelope(r, 1, "Wrong password.")

    def test_email_success(self):
        User.objects.filter(pk=self.user.pk).update(verified=True)

        r = self.post({"action": "email", "new_email": "New@Example.com", "password": self.PASSWORD})
        self.assertEnvelope(r, 0, "Email address changed. Please log in again.")

        user = User.objects.get(pk=self.user.pk)
        self.assertEqual(user.email, "new@example.com")
        self.assertFalse(user.verified)
        self.assertEqual(self.client.get("/user").status_code, status.HTTP_401_UNAUTHORIZED)

    # -----------------------
    # delete
    # -----------------------
    def test_delete_validation(self):
        self.assertEnvelope(self.post({"action": "delete"}), 1, "The password field is required.")
        self.assertEnvelope(
            self.post({"action": "delete", "password": "1"}), 1,
            "The password must be at least 6 characters.",
        )
        self.assertEnvelope(
            self.post({"action": "delete", "password": "x" * 33}), 1,
            "The password may not be greater than 32 characters.",
        )
        self.assertEnvelope(self.post({"action": "delete", "password": "7654321"}), 1, "Wrong password.")
        self.assertTrue(User.objects.filter(pk=self.user.pk).exists())

    def test_delete_success(self):
        r = self.post({"action": "delete", "password": self.PASSWORD})
        self.assertEnvelope(r, 0, "Your account has been deleted.")
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())
        self.assertEqual(self.client.get("/user").status_code, status.HTTP_401_UNAUTHORIZED)

    # -----------------------
    # persistence failure
    # -----------------------
    def test_database_error_is_operation_failed(self):
        with mock.patch.object(User, "save", side_effect=DatabaseError("database is locked")):
            r = self.post({"action": "nickname", "new_nickname": "nickname"})
        self.assertEnvelope(r, 3, "Operation failed: database is locked")


class AvatarTests(AccountAPITestCase):
    def setUp(self):
        super().setUp()
        self.other = User.objects.create_user(email="other@example.com", password=self.PASSWORD)
        self.steve = Texture.objects.create(name="steve", type=Texture.Type.STEVE, uploader=self.other)
        self.cape = Texture.objects.create(name="cape", type=Texture.Type.CAPE, uploader=self.other)
        self.private = Texture.objects.create(name="hidden", type=Texture.Type.ALEX, uploader=self.other, public=False)

    def avatar(self, payload):
        return self.client.post("/user/profile/avatar", payload, format="json")

    def test_body_must_be_an_object(self):
        self.assertEnvelope(self.avatar([self.steve.pk]), 1, "Illegal parameters.")

    def test_validation(self):
        self.assertEnvelope(self.avatar({}), 1, "The tid field is required.")
        self.assertEnvelope(self.avatar({"tid": "string"}), 1, "The tid must be an integer.")

    def test_not_found(self):
        self.assertEnvelope(self.avatar({"tid": -1}), 1, "The texture does not exist.")
        self.assertEnvelope(self.avatar({"tid": self.private.pk}), 1, "The texture does not exist.")

    def test_cape_refused(self):
        self.assertEnvelope(self.avatar({"tid": self.cape.pk}), 1, "A cape cannot be used as avatar.")
        self.assertIsNone(User.objects.get(pk=self.user.pk).avatar_id)

    def test_success(self):
        r = self.avatar({"tid": self.steve.pk})
        self.assertEnvelope(r, 0, "Avatar updated.")
        self.assertEqual(r.data["tid"], self.steve.pk)
        self.assertEqual(User.objects.get(pk=self.user.pk).avatar_id, self.steve.pk)

    def test_own_private_texture_allowed(self):
        mine = Texture.objects.create(name="mine", type=Texture.Type.ALEX, uploader=self.user, public=False)
        self.assertEnvelope(self.avatar({"tid": mine.pk}), 0)

    def test_profile_action_route(self):
        r = self.client.post("/user/profile", {"action": "avatar", "tid": self.steve.pk}, format="json")
        self.assertEnvelope(r, 0, "Avatar updated.")
