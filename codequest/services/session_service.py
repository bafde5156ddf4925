"""
Session use cases: login, signup, logout and progress/preference updates.

``SessionController`` is the only writer of the in-memory session. Every
mutation is persisted through ``AccountStore.save_user`` so the current-user
slot and the roster entry stay identical.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional

from codequest.core.config import get_settings
from codequest.core.security import hash_password, is_hashed, verify_password
from codequest.domain.accounts import Account, SessionUser, new_account
from codequest.repositories.account_store import AccountStore

logger = logging.getLogger(__name__)


class InsufficientBalanceError(ValueError):
    """A progress delta would leave xp or coins negative."""


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class SessionController:
    """
    Holds the active user of this device and a loading flag.

    The saved session is restored synchronously on construction. ``login`` and
    ``signup`` suspend for a simulated round trip and are serialized, so two
    overlapping calls on one controller never interleave their store access.
    """

    def __init__(self, store: AccountStore, *, latency: float | None = None):
        self.store = store
        self.settings = get_settings()
        self._latency = self.settings.simulated_latency_seconds if latency is None else max(0.0, latency)
        self._lock = asyncio.Lock()
        self._user: Optional[SessionUser] = None
        self._is_loading = True
        self._initialized = False
        self._restore()

    # -------------------------------------- state --------------------------------------
    @property
    def user(self) -> Optional[SessionUser]:
        if self._user is None:
            return None
        return replace(self._user, badges=list(self._user.badges))

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def state(self) -> SessionState:
        if not self._initialized:
            return SessionState.UNINITIALIZED
        if self._is_loading:
            return SessionState.LOADING
        return SessionState.AUTHENTICATED if self._user is not None else SessionState.ANONYMOUS

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _new_id(self, taken: Iterable[str]) -> str:
        taken_ids = set(taken)
        candidate = int(time.time() * 1000)
        while str(candidate) in taken_ids:
            candidate += 1
        return str(candidate)

    def _restore(self) -> None:
        saved = self.store.get_current_user()
        if saved:
            self._user = saved.session_user()
            logger.info("Restored session for user %s", saved.id)
        self._is_loading = False
        self._initialized = True

    async def _simulate_round_trip(self) -> None:
        await asyncio.sleep(self._latency)

    async def _match_credentials(self, email: str, password: str) -> Optional[Account]:
        candidates = [account for account in self.store.get_users() if account.email == email]
        if not candidates:
            # an unknown email pays the same argon2 cost as a wrong password
            await asyncio.to_thread(lambda: verify_password(password, _dummy_hash()))
            return None
        for account in candidates:
            if await asyncio.to_thread(verify_password, password, account.secret):
                return account
        return None

    def _persist(self, updated: SessionUser) -> None:
        """Write ``updated`` to the current-user slot and its roster entry in one transaction."""
        with self.store.transaction():
            stored = self.store.get_user(updated.id) or self.store.get_current_user()
            if stored is None or not stored.secret:
                logger.warning("No stored credential for user %s; update not persisted", updated.id)
                return
            self.store.save_user(updated.with_secret(stored.secret))
        self._user = updated

    # -------------------------------------- login --------------------------------------
    async def login(self, email: str, password: str) -> bool:
        async with self._lock:
            self._is_loading = True
            try:
                await self._simulate_round_trip()
                account = await self._match_credentials(email, password)
                if account is None:
                    logger.info("Login rejected")
                    return False
                if not is_hashed(account.secret):
                    account.secret = await asyncio.to_thread(hash_password, password)
                    logger.info("Upgraded legacy credential for user %s", account.id)
                account.last_login_at = self._now()
                self.store.save_user(account)
                self._user = account.session_user()
                logger.info("User %s logged in", account.id)
                return True
            finally:
                self._is_loading = False

    # -------------------------------------- signup --------------------------------------
    async def signup(self, email: str, password: str, name: str) -> bool:
        async with self._lock:
            self._is_loading = True
            try:
                await self._simulate_round_trip()
                users = self.store.get_users()
                if any(u.email == email for u in users):
                    logger.info("Signup rejected: email already registered")
                    return False
                secret = await asyncio.to_thread(hash_password, password)
                account = new_account(
                    self._new_id(u.id for u in users),
                    email,
                    secret,
                    name,
                    self._now(),
                )
                self.store.save_user(account)
                self._user = account.session_user()
                logger.info("Created account %s", account.id)
                return True
            finally:
                self._is_loading = False

    def logout(self) -> None:
        user_id = self._user.id if self._user else None
        self._user = None
        self.store.clear_current_user()
        if user_id:
            logger.info("User %s logged out", user_id)

    # -------------------------------------- updates --------------------------------------
    def update_user_progress(self, xp: int, coins: int, badges: Optional[list[str]] = None) -> None:
        """
        Add ``xp`` and ``coins`` (deltas, may be negative) and append ``badges``.

        Raises ``InsufficientBalanceError`` when a delta would take xp or coins
        below zero; nothing is applied in that case.
        """
        user = self._user
        if user is None:
            logger.debug("Progress update ignored: no active session")
            return
        if user.xp + xp < 0 or user.coins + coins < 0:
            raise InsufficientBalanceError(
                f"Cannot apply xp {xp:+d} / coins {coins:+d} to balance xp={user.xp} coins={user.coins}"
            )
        updated = replace(
            user,
            xp=user.xp + xp,
            coins=user.coins + coins,
            badges=[*user.badges, *badges] if badges else list(user.badges),
        )
        self._persist(updated)

    def update_user_preferences(self, preferences: Mapping[str, Any]) -> None:
        user = self._user
        if user is None:
            logger.debug("Preference update ignored: no active session")
            return
        merged = user.preferences.merged(preferences)
        self._persist(replace(user, preferences=merged, badges=list(user.badges)))
