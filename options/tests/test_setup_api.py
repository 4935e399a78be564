from unittest import mock

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from options.repository import get_option_repository


User = get_user_model()


class SetupWizardTests(APITestCase):
    def setUp(self):
        self.client = APIClient()

    def test_status(self):
        r = self.client.get("/setup")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertTrue(r.data["installed"])
        self.assertEqual(r.data["version"], settings.APP_VERSION)
        self.assertEqual(r.data["app_version"], settings.APP_VERSION)

    def test_install_refused_when_installed(self):
        r = self.client.post("/setup", {"email": "admin@example.com", "password": "12345678", "nickname": "admin"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email="admin@example.com").exists())

    def test_install_creates_first_admin(self):
        with mock.patch("options.views.tables_exist", return_value=False), \
                mock.patch("options.views._migrate") as migrate:
            r = self.client.post(
                "/setup",
                {"email": "Admin@Example.com", "password": "12345678", "nickname": "admin", "site_name": "Skins"},
                format="json",
            )
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, r.data)
        migrate.assert_called_once()

        admin = User.objects.get(email="admin@example.com")
        self.assertTrue(admin.is_superuser)
        self.assertTrue(admin.verified)
        self.assertEqual(admin.score, get_option_repository().get("user_initial_score"))
        self.assertEqual(get_option_repository().get("site_name"), "Skins")

    def test_install_validates_input(self):
        with mock.patch("options.views.tables_exist", return_value=False), \
                mock.patch("options.views._migrate") as migrate:
            r = self.client.post("/setup", {"email": "nope", "password": "1", "nickname": "admin"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        migrate.assert_not_called()

    def test_update(self):
        r = self.client.get("/setup/update")
        self.assertFalse(r.data["outdated"])
        r = self.client.post("/setup/update")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

        get_option_repository().set("version", "1.0.0")
        self.assertTrue(self.client.get("/setup/update").data["outdated"])

        with mock.patch("options.views._migrate") as migrate:
            r = self.client.post("/setup/update")
        self.assertEqual(r.status_code, status.HTTP_200_OK, r.data)
        migrate.assert_called_once()
        self.assertEqual(r.data["previous"], "1.0.0")
        self.assertEqual(get_option_repository().get("version"), settings.APP_VERSION)

        # Gate lifted
        self.assertEqual(self.client.get("/user").status_code, status.HTTP_401_UNAUTHORIZED)
