"""
users/signin.py — Daily sign-in reward calculator


Rules (options read through options.repository)
===============================================================================
- sign_score       "min,max" — the reward is a uniform random integer in
                   [min, max] (inclusive). "50,50" always awards 50.
- sign_gap_time    hours between two sign-ins (fixed-interval mode).
- sign_after_zero  when on, the cooldown ends at the first local midnight at
                   or after the last sign-in instead (a sign-in stamped
                   exactly at midnight is already unlocked).

A user who never signed in may sign in right away.

Remaining time is reported the way the dashboard shows it: whole hours
(rounded) when at least one hour is left, otherwise whole minutes (rounded up,
so a blocked user never reads "0 minutes"). No time left reads as 0 minutes.

Concurrency
- sign_in() re-reads the user row with SELECT ... FOR UPDATE inside a
  transaction and checks the cooldown again under the lock, so two
  simultaneous requests cannot both collect a reward.
"""

import logging
import math
import random
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

UNIT_HOUR = "hour"
UNIT_MINUTE = "min"


def parse_score_range(raw) -> tuple[int, int]:
    """Parse "min,max"; malformed input falls back to the documented default."""
    try:
        low, high = (int(part.strip()) for part in str(raw).split(","))
    except ValueError:
        logger.warning("Invalid sign_score option %r; using default", raw)
        low, high = (int(part) for part in settings.OPTION_DEFAULTS["sign_score"].split(","))
    if low > high:
        low, high = high, low
    return low, high


def next_local_midnight(moment):
    """First local midnight at or after `moment`."""
    local = timezone.localtime(moment)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    if local > midnight:
        midnight += timedelta(days=1)
    return midnight


def next_sign_in_at(last_sign_at, options):
    if last_sign_at is None:
        return None
    if options.get("sign_after_zero"):
        return next_local_midnight(last_sign_at)
    return last_sign_at + timedelta(hours=options.get("sign_gap_time"))


def remaining_seconds(last_sign_at, options, now=None) -> float:
    """Seconds until the next sign-in is allowed (<= 0 means allowed now)."""
    now = now or timezone.now()
    allowed_at = next_sign_in_at(last_sign_at, options)
    if allowed_at is None:
        return 0.0
    return (allowed_at - now).total_seconds()


def quantize_remaining(seconds: float) -> tuple[int, str]:
    if seconds <= 0:
        return 0, UNIT_MINUTE
    if seconds / 3600 >= 1:
        return int(seconds / 3600 + 0.5), UNIT_HOUR
    return max(1, math.ceil(seconds / 60)), UNIT_MINUTE


def storage_statistics(user, options) -> dict:
    """used/total KB and usage percentage; total grows with the score balance."""
    used = user.storage_used
    rate = options.get("score_per_storage")
    if not rate:
        return {"percentage": 0, "total": "UNLIMITED", "used": used}
    total = used + user.score // rate
    percentage = round(used / total * 100, 2) if total else 100
    return {"percentage": percentage, "total": total, "used": used}


@dataclass
class SignInResult:
    ok: bool
    awarded: int
    score: int
    remaining_seconds: float

    @property
    def remaining(self) -> tuple[int, str]:
        return quantize_remaining(self.remaining_seconds)


def sign_in(user, options, now=None, rng=None) -> SignInResult:
    """Award the daily reward if the cooldown has passed; `user` is updated in place."""
    now = now or timezone.now()
    rng = rng or random
    low, high = parse_score_range(options.get("sign_score"))

    with transaction.atomic():
        locked = type(user).objects.select_for_update().get(pk=user.pk)
        left = remaining_seconds(locked.last_sign_at, options, now)
        if left > 0:
            return SignInResult(ok=False, awarded=0, score=locked.score, remaining_seconds=left)

        awarded = rng.randint(low, high)
        locked.score += awarded
        locked.last_sign_at = now
        locked.save(update_fields=["score", "last_sign_at"])

    user.score = locked.score
    user.last_sign_at = locked.last_sign_at
    logger.info("User #%s signed in for %d score", user.pk, awarded)
    return SignInResult(
        ok=True,
        awarded=awarded,
        score=locked.score,
        remaining_seconds=remaining_seconds(now, options, now),
    )
