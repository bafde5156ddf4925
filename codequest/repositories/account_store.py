"""
Account roster and current-user slot on top of a key-value backend.

Two keys are used: the roster (list of account records, credentials included)
and the current-user slot (the record of whoever is logged in on this device).
``save_user`` upserts both inside a single backend transaction, so the roster
entry and the slot always carry the same data and the same credential.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from codequest.core.config import Settings, get_settings
from codequest.domain.accounts import Account
from codequest.repositories.base import CorruptStoreError, KeyValueBackend

logger = logging.getLogger(__name__)

USERS_KEY = "codequest-users"
CURRENT_USER_KEY = "codequest-current-user"


def build_backend(settings: Settings | None = None) -> KeyValueBackend:
    """Instantiate the backend selected by ``STORAGE_BACKEND``."""
    settings = settings or get_settings()
    if settings.storage_backend == "sql":
        from codequest.repositories.sql_repository import SQLStorage

        return SQLStorage()
    from codequest.repositories.json_storage import JsonStorage

    return JsonStorage(settings.data_file)


def _decode(record: Any) -> Account:
    if not isinstance(record, dict):
        raise CorruptStoreError(f"Account record must be an object, got {type(record).__name__}")
    try:
        return Account.from_dict(record)
    except (KeyError, TypeError, ValueError) as exc:
        raise CorruptStoreError(f"Undecodable account record {record.get('id')!r}") from exc


class AccountStore:
    def __init__(self, backend: KeyValueBackend):
        self.backend = backend

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AccountStore":
        return cls(build_backend(settings))

    def transaction(self):
        return self.backend.transaction()

    # -------------------------- current user --------------------------
    def get_current_user(self) -> Optional[Account]:
        record = self.backend.get(CURRENT_USER_KEY)
        if record is None:
            return None
        return _decode(record)

    def clear_current_user(self) -> None:
        """Drop the session association; the roster entry is kept."""
        self.backend.delete(CURRENT_USER_KEY)

    def save_user(self, account: Account) -> None:
        """Upsert ``account`` into the roster and make it the current user, atomically."""
        with self.backend.transaction():
            users = self.get_users()
            for index, existing in enumerate(users):
                if existing.id == account.id:
                    users[index] = account
                    break
            else:
                users.append(account)
            self.save_users(users)
            self.backend.set(CURRENT_USER_KEY, account.to_dict())

    # -------------------------- roster --------------------------
    def get_users(self) -> list[Account]:
        records = self.backend.get(USERS_KEY) or []
        if not isinstance(records, list):
            raise CorruptStoreError("Account roster must be a list")
        return [_decode(record) for record in records]

    def save_users(self, accounts: Iterable[Account]) -> None:
        """Overwrite the whole roster."""
        self.backend.set(USERS_KEY, [account.to_dict() for account in accounts])

    def get_user(self, user_id: str) -> Optional[Account]:
        for account in self.get_users():
            if account.id == user_id:
                return account
        return None

    def find_by_email(self, email: str) -> Optional[Account]:
        """Exact, case-sensitive email lookup."""
        for account in self.get_users():
            if account.email == email:
                return account
        return None
