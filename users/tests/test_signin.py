from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.contrib.auth import get_user_model

from users import signin


UTC = dt_timezone.utc
NOON = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)

FIXED = {"sign_gap_time": 24, "sign_after_zero": False, "sign_score": "50,50", "score_per_storage": 1}
MIDNIGHT = {**FIXED, "sign_after_zero": True}


class HighestRoll:
    def randint(self, low, high):
        return high


# -----------------------
# Range parsing
# -----------------------
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("50,50", (50, 50)),
        (" 5 , 15 ", (5, 15)),
        ("100,10", (10, 100)),
        ("abc", (10, 100)),
        ("1,2,3", (10, 100)),
        (None, (10, 100)),
    ],
)
def test_parse_score_range(raw, expected):
    assert signin.parse_score_range(raw) == expected


# -----------------------
# Cooldown
# -----------------------
def test_never_signed_in_may_sign_immediately():
    assert signin.remaining_seconds(None, FIXED, NOON) == 0


def test_fixed_interval_cooldown():
    last = NOON - timedelta(hours=20)
    assert signin.remaining_seconds(last, FIXED, NOON) == 4 * 3600
    assert signin.remaining_seconds(NOON - timedelta(hours=24), FIXED, NOON) == 0


def test_midnight_mode_unlocks_at_next_midnight():
    last = NOON - timedelta(hours=1)
    assert signin.next_sign_in_at(last, MIDNIGHT) == datetime(2024, 5, 11, tzinfo=UTC)
    assert signin.remaining_seconds(last, MIDNIGHT, NOON) == 12 * 3600


def test_midnight_mode_sign_in_stamped_at_midnight_is_unlocked():
    midnight = datetime(2024, 5, 10, tzinfo=UTC)
    assert signin.next_local_midnight(midnight) == midnight
    assert signin.remaining_seconds(midnight, MIDNIGHT, NOON) < 0


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (24 * 3600 - 1, (24, signin.UNIT_HOUR)),
        (5400, (2, signin.UNIT_HOUR)),
        (3600, (1, signin.UNIT_HOUR)),
        (3599, (60, signin.UNIT_MINUTE)),
        (600, (10, signin.UNIT_MINUTE)),
        (61, (2, signin.UNIT_MINUTE)),
        (0.5, (1, signin.UNIT_MINUTE)),
        (0, (0, signin.UNIT_MINUTE)),
        (-30, (0, signin.UNIT_MINUTE)),
    ],
)
def test_quantize_remaining(seconds, expected):
    assert signin.quantize_remaining(seconds) == expected


# -----------------------
# sign_in()
# -----------------------
@pytest.mark.django_db
def test_sign_in_awards_and_stamps():
    user = get_user_model().objects.create_user(email="signer@example.com", password="12345678", score=1000)
    options = {**FIXED, "sign_score": "10,20"}

    result = signin.sign_in(user, options, now=NOON, rng=HighestRoll())

    assert result.ok
    assert result.awarded == 20
    assert result.score == 1020
    assert result.remaining == (24, signin.UNIT_HOUR)
    user.refresh_from_db()
    assert user.score == 1020
    assert user.last_sign_at == NOON


@pytest.mark.django_db
def test_sign_in_refused_during_cooldown_leaves_score():
    user = get_user_model().objects.create_user(
        email="early@example.com", password="12345678", score=1000, last_sign_at=NOON - timedelta(minutes=30),
    )

    result = signin.sign_in(user, FIXED, now=NOON)

    assert not result.ok
    assert result.awarded == 0
    assert result.remaining == (24, signin.UNIT_HOUR)
    user.refresh_from_db()
    assert user.score == 1000


@pytest.mark.django_db
def test_sign_in_without_cooldown_reports_no_wait():
    user = get_user_model().objects.create_user(email="nogap@example.com", password="12345678", score=0)

    result = signin.sign_in(user, {**FIXED, "sign_gap_time": 0}, now=NOON)

    assert result.ok
    assert result.remaining == (0, signin.UNIT_MINUTE)


@pytest.mark.django_db
def test_sign_in_checks_the_stored_row():
    """A stale in-memory user must not sign in twice."""
    User = get_user_model()
    user = User.objects.create_user(email="twice@example.com", password="12345678", score=0)
    stale = User.objects.get(pk=user.pk)

    assert signin.sign_in(user, FIXED, now=NOON).ok
    second = signin.sign_in(stale, FIXED, now=NOON + timedelta(seconds=1))

    assert not second.ok
    assert User.objects.get(pk=user.pk).score == 50


@pytest.mark.django_db
def test_storage_statistics():
    user = get_user_model().objects.create_user(email="store@example.com", password="12345678", score=300)
    user.textures.create(name="a", size=100)

    assert signin.storage_statistics(user, {"score_per_storage": 1}) == {"percentage": 25.0, "total": 400, "used": 100}
    assert signin.storage_statistics(user, {"score_per_storage": 3}) == {"percentage": 50.0, "total": 200, "used": 100}
    assert signin.storage_statistics(user, {"score_per_storage": 0}) == {"percentage": 0, "total": "UNLIMITED", "used": 100}
