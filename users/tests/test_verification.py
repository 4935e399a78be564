import pytest
from django.contrib.auth import get_user_model
from django.core import mail

from users.envelopes import Errno
from users.verification import LAST_MAIL_SESSION_KEY, MailThrottle, confirm_verification, send_verification_email


pytestmark = pytest.mark.django_db

OPTIONS = {"require_verification": True, "site_name": "Skins", "site_url": "https://skins.example/"}
NOW = 1_700_000_000.0


@pytest.fixture
def user():
    return get_user_model().objects.create_user(email="unverified@example.com", password="12345678", nickname="Steve")


def test_throttle_window_lives_in_the_given_store(user):
    session = {LAST_MAIL_SESSION_KEY: NOW - 10}
    outcome = send_verification_email(user, session, OPTIONS, now=NOW)
    assert outcome.errno == Errno.FAILED
    assert len(mail.outbox) == 0

    empty = {}
    assert send_verification_email(user, empty, OPTIONS, now=NOW).ok
    assert empty[LAST_MAIL_SESSION_KEY] == NOW


def test_mail_throttle_is_shared_per_account(user):
    other = get_user_model().objects.create_user(email="other@example.com", password="12345678")

    assert send_verification_email(user, MailThrottle(user), OPTIONS, now=NOW).ok
    assert MailThrottle(user)[LAST_MAIL_SESSION_KEY] == NOW

    again = send_verification_email(user, MailThrottle(user), OPTIONS, now=NOW + 5)
    assert again.errno == Errno.FAILED
    assert MailThrottle(other).get(LAST_MAIL_SESSION_KEY) is None
    assert len(mail.outbox) == 1


def test_window_expires_after_a_minute(user):
    session = {LAST_MAIL_SESSION_KEY: NOW - 61}
    assert send_verification_email(user, session, OPTIONS, now=NOW).ok
    assert session[LAST_MAIL_SESSION_KEY] == NOW


def test_checks_run_in_order(user):
    user.verified = True
    session = {LAST_MAIL_SESSION_KEY: NOW}

    disabled = send_verification_email(user, session, {**OPTIONS, "require_verification": False}, now=NOW)
    assert disabled.msg == "Account verification is disabled."

    frequent = send_verification_email(user, session, OPTIONS, now=NOW)
    assert "too frequently" in frequent.msg

    verified = send_verification_email(user, {}, OPTIONS, now=NOW)
    assert verified.msg == "Your account is already verified."


def test_mail_content(user):
    assert send_verification_email(user, {}, OPTIONS, now=NOW).ok

    user.refresh_from_db()
    assert len(user.verification_token) == 40
    message = mail.outbox[0]
    link = f"https://skins.example/auth/verify?uid={user.pk}&token={user.verification_token}"
    assert link in message.body
    assert "Steve" in message.body
    html, mimetype = message.alternatives[0]
    assert mimetype == "text/html"
    assert "https://skins.example/auth/verify" in html


def test_token_is_single_use(user):
    send_verification_email(user, {}, OPTIONS, now=NOW)
    token = user.verification_token

    assert confirm_verification(user, token, OPTIONS).ok
    assert confirm_verification(user, token, OPTIONS).errno == Errno.FAILED
