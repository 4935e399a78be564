"""
users/verification.py — Email verification mails

send_verification_email(user, session, options) checks, in order:
  1. the require_verification option is on
  2. no mail was recorded in `session` in the last VERIFICATION_MAIL_INTERVAL seconds
  3. the account is not verified yet
then refreshes the user's verification token and mails a link
    {site_url}/auth/verify?uid=<id>&token=<token>

`session` is any mutable mapping. Views pass a MailThrottle, which keeps the
send time in Django's cache under the account id, so every token and device
of one account shares the window; tests may pass a plain dict.
The send time is recorded under "last_mail_time" only when the mail went out.

Failures
- token refresh hits a DatabaseError → errno 3 "Operation failed: ..."
- rendering or sending the mail raises → errno 2 with the diagnostic
"""

import logging
import secrets
import time
from email.utils import formataddr
from urllib.parse import urlencode

from django.conf import settings
from django.core.cache import cache
from django.core.mail import send_mail
from django.db import DatabaseError
from django.template.loader import render_to_string
from django.utils.crypto import constant_time_compare
from django.utils.translation import gettext as _

from .envelopes import Errno, Outcome

logger = logging.getLogger(__name__)

LAST_MAIL_SESSION_KEY = "last_mail_time"


class MailThrottle:
    """Session-like view of the cache, scoped to one account."""

    def __init__(self, user):
        self.prefix = f"verification-mail:{user.pk}"

    def _key(self, name):
        return f"{self.prefix}:{name}"

    def get(self, name, default=None):
        return cache.get(self._key(name), default)

    def __getitem__(self, name):
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __setitem__(self, name, value):
        cache.set(self._key(name), value, timeout=settings.VERIFICATION_MAIL_INTERVAL)


def verification_url(user, options) -> str:
    query = urlencode({"uid": user.pk, "token": user.verification_token})
    return f"{options.get('site_url').rstrip('/')}/auth/verify?{query}"


def send_verification_email(user, session, options, now=None) -> Outcome:
    now = time.time() if now is None else now

    if not options.get("require_verification"):
        return Outcome(Errno.FAILED, _("Account verification is disabled."))

    last_sent = float(session.get(LAST_MAIL_SESSION_KEY) or 0)
    if now - last_sent < settings.VERIFICATION_MAIL_INTERVAL:
        return Outcome(Errno.FAILED, _("You are requesting verification emails too frequently, please wait a minute."))

    if user.verified:
        return Outcome(Errno.FAILED, _("Your account is already verified."))

    user.verification_token = secrets.token_hex(20)
    try:
        user.save(update_fields=["verification_token"])
    except DatabaseError as exc:
        logger.exception("Could not store a verification token for user #%s", user.pk)
        return Outcome(Errno.OPERATION_FAILED, _("Operation failed: %(error)s") % {"error": exc})

    site_name = options.get("site_name")
    context = {"user": user, "site_name": site_name, "url": verification_url(user, options)}
    subject = _("Verify your email address on %(site_name)s") % {"site_name": site_name}

    try:
        send_mail(
            subject,
            render_to_string("mails/email_verification.txt", context),
            formataddr((site_name, settings.DEFAULT_FROM_EMAIL)),
            [user.email],
            html_message=render_to_string("mails/email_verification.html", context),
        )
    except Exception as exc:
        logger.exception("Verification mail to user #%s failed", user.pk)
        return Outcome(Errno.TRANSPORT_FAILED, _("Failed to send verification email: %(msg)s") % {"msg": exc})

    session[LAST_MAIL_SESSION_KEY] = now
    logger.info("Verification mail sent to user #%s", user.pk)
    return Outcome(Errno.OK, _("Verification email sent, please check your inbox."))


def confirm_verification(user, token, options) -> Outcome:
    if not options.get("require_verification"):
        return Outcome(Errno.FAILED, _("Account verification is disabled."))
    if user is None or not user.verification_token or not constant_time_compare(user.verification_token, token or ""):
        return Outcome(Errno.FAILED, _("Invalid verification link."))

    user.verified = True
    user.verification_token = ""
    user.save(update_fields=["verified", "verification_token"])
    logger.info("User #%s verified their email", user.pk)
    return Outcome(Errno.OK, _("Your email address has been verified."))
