"""
Account and session-user records.

``SessionUser`` is what the active session exposes; ``Account`` is the roster
entry and adds the stored credential. Both serialize to the camelCase JSON
shape persisted by the account store (the credential under ``password``).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

XP_PER_LEVEL = 1000
STARTING_COINS = 100
WELCOME_BADGE = "Welcome"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Preferences:
    theme: Theme = Theme.DARK
    notifications: bool = True
    sound_effects: bool = True
    auto_save: bool = True

    _WIRE_NAMES = {
        "theme": "theme",
        "notifications": "notifications",
        "soundEffects": "sound_effects",
        "autoSave": "auto_save",
    }

    def merged(self, changes: Mapping[str, Any]) -> "Preferences":
        """Shallow-merge ``changes`` (snake_case or camelCase names) over these preferences."""
        updates: dict[str, Any] = {}
        for name, value in changes.items():
            attr = self._WIRE_NAMES.get(name, name)
            if attr not in {f.name for f in fields(self)}:
                raise ValueError(f"Unknown preference: {name}")
            if attr == "theme":
                value = Theme(value)
            elif not isinstance(value, bool):
                raise ValueError(f"Preference {name} must be a boolean, got {value!r}")
            updates[attr] = value
        return replace(self, **updates) if updates else self

    def to_dict(self) -> dict:
        return {
            "theme": self.theme.value,
            "notifications": self.notifications,
            "soundEffects": self.sound_effects,
            "autoSave": self.auto_save,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Preferences":
        defaults = cls()
        return defaults.merged({k: v for k, v in (data or {}).items() if k in cls._WIRE_NAMES})


@dataclass
class SessionUser:
    """Profile and progress of the logged-in user. Never carries the credential."""

    id: str
    email: str
    name: str
    xp: int
    coins: int
    badges: list[str]
    created_at: datetime
    last_login_at: datetime
    preferences: Preferences = field(default_factory=Preferences)

    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    def with_secret(self, secret: str) -> "Account":
        return Account(**_profile_fields(self), secret=secret)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "level": self.level,
            "coins": self.coins,
            "xp": self.xp,
            "badges": list(self.badges),
            "createdAt": format_timestamp(self.created_at),
            "lastLoginAt": format_timestamp(self.last_login_at),
            "preferences": self.preferences.to_dict(),
        }


@dataclass
class Account(SessionUser):
    """Roster entry: a session user plus its stored credential."""

    secret: str = ""

    def session_user(self) -> SessionUser:
        return SessionUser(**_profile_fields(self))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["password"] = self.secret
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Account":
        # level is derived from xp; the persisted value is not trusted
        return cls(
            id=str(data["id"]),
            email=str(data["email"]),
            name=str(data.get("name") or ""),
            xp=int(data.get("xp") or 0),
            coins=int(data.get("coins") or 0),
            badges=[str(b) for b in data.get("badges") or []],
            created_at=parse_timestamp(data["createdAt"]),
            last_login_at=parse_timestamp(data.get("lastLoginAt") or data["createdAt"]),
            preferences=Preferences.from_dict(data.get("preferences")),
            secret=str(data.get("password") or ""),
        )


def _profile_fields(user: SessionUser) -> dict:
    values = {f.name: getattr(user, f.name) for f in fields(SessionUser)}
    values["badges"] = list(user.badges)
    return values


def new_account(user_id: str, email: str, secret: str, name: str, now: datetime) -> Account:
    """Build a freshly signed-up account with the starting progress and default preferences."""
    return Account(
        id=user_id,
        email=email,
        name=name,
        xp=0,
        coins=STARTING_COINS,
        badges=[WELCOME_BADGE],
        created_at=now,
        last_login_at=now,
        preferences=Preferences(),
        secret=secret,
    )
