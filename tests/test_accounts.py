from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Make the codequest package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from codequest.domain.accounts import Account, Preferences, Theme, level_for_xp, new_account  # noqa: E402


def _account(**overrides) -> Account:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    account = new_account("1714564800000", "ana@example.com", "argon2$x", "Ana", now)
    for name, value in overrides.items():
        setattr(account, name, value)
    return account


@pytest.mark.parametrize("xp, level", [(0, 1), (999, 1), (1000, 2), (1050, 2), (2999, 3)])
def test_level_is_derived_from_xp(xp, level):
    assert level_for_xp(xp) == level
    assert _account(xp=xp).level == level


def test_new_account_defaults():
    account = _account()

    assert account.xp == 0
    assert account.coins == 100
    assert account.level == 1
    assert account.badges == ["Welcome"]
    assert account.created_at == account.last_login_at
    assert account.preferences == Preferences(theme=Theme.DARK, notifications=True, sound_effects=True, auto_save=True)


def test_record_uses_camel_case_and_keeps_credential_under_password():
    data = _account(xp=1500).to_dict()

    assert data["password"] == "argon2$x"
    assert data["level"] == 2
    assert data["createdAt"] == "2024-05-01T12:00:00Z"
    assert data["preferences"] == {"theme": "dark", "notifications": True, "soundEffects": True, "autoSave": True}


def test_persisted_level_is_ignored_on_load():
    data = _account(xp=2500).to_dict()
    data["level"] = 99

    loaded = Account.from_dict(data)

    assert loaded.level == 3
    assert loaded.secret == "argon2$x"
    assert loaded.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_session_user_drops_the_credential():
    user = _account().session_user()

    assert not hasattr(user, "secret")
    assert "password" not in user.to_dict()
    assert user.with_secret("argon2$y").secret == "argon2$y"


def test_preferences_merge_keeps_unspecified_fields():
    prefs = Preferences()

    assert prefs.merged({}) == prefs
    merged = prefs.merged({"theme": "light", "soundEffects": False})
    assert merged.theme is Theme.LIGHT
    assert merged.sound_effects is False
    assert merged.notifications is True
    assert merged.auto_save is True
    assert prefs.merged({"auto_save": False}).auto_save is False


def test_preferences_merge_rejects_unknown_names_and_themes():
    with pytest.raises(ValueError):
        Preferences().merged({"volume": 11})
    with pytest.raises(ValueError):
        Preferences().merged({"theme": "sepia"})


def test_preferences_toggles_must_be_booleans():
    with pytest.raises(ValueError):
        Preferences().merged({"notifications": "nope"})
    with pytest.raises(ValueError):
        Preferences().merged({"auto_save": None})
    assert Preferences().merged({"soundEffects": False}).sound_effects is False
