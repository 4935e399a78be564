import pytest

from options.models import Option
from options.repository import OptionRepository, get_option_repository, reset_option_repository


pytestmark = pytest.mark.django_db


def test_defaults_when_unset():
    options = OptionRepository()
    assert options.get("sign_gap_time") == 24
    assert options["sign_score"] == "10,100"
    assert options.get("require_verification") is False
    assert options.get("not_an_option", 5) == 5
    assert "site_name" in options
    assert "not_an_option" not in options


def test_set_writes_through_and_coerces():
    options = OptionRepository()
    options.set("require_verification", True)
    options.set("sign_gap_time", "12")

    assert Option.objects.get(name="require_verification").value == "true"
    fresh = OptionRepository()
    assert fresh.get("require_verification") is True
    assert fresh.get("sign_gap_time") == 12


def test_garbage_integer_falls_back_to_default():
    Option.objects.create(name="sign_gap_time", value="soon")
    assert OptionRepository().get("sign_gap_time") == 24


def test_json_option():
    options = OptionRepository()
    assert options.get_json("plugins_enabled") == []
    options.set("plugins_enabled", ["example"])
    assert options.get_json("plugins_enabled") == ["example"]

    Option.objects.filter(name="plugins_enabled").update(value="{broken")
    assert options.reload().get_json("plugins_enabled", default=[]) == []


def test_loaded_once_until_reload():
    options = OptionRepository()
    assert options.get("site_name") == "Skinhost"

    Option.objects.create(name="site_name", value="Elsewhere")
    assert options.get("site_name") == "Skinhost"
    assert options.reload().get("site_name") == "Elsewhere"


def test_forget_restores_default():
    options = OptionRepository()
    options.set("announcement", "Hello")
    options.forget("announcement")
    assert options.get("announcement") == ""
    assert not Option.objects.filter(name="announcement").exists()


def test_all_merges_defaults_and_rows():
    options = OptionRepository()
    options.set("user_initial_score", 42)
    merged = options.all()
    assert merged["user_initial_score"] == 42
    assert merged["sign_score"] == "10,100"
    assert merged["version"]


def test_process_wide_instance():
    first = get_option_repository()
    assert get_option_repository() is first
    reset_option_repository()
    assert get_option_repository() is not first
