"""Scoped access to a SessionController for code that cannot receive it as an argument."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from codequest.services.session_service import SessionController

_current: ContextVar[Optional[SessionController]] = ContextVar("codequest_session", default=None)


class SessionContextError(RuntimeError):
    """Raised when the session is requested outside a provider."""


@contextmanager
def session_provider(controller: SessionController) -> Iterator[SessionController]:
    token = _current.set(controller)
    try:
        yield controller
    finally:
        _current.reset(token)


def use_session() -> SessionController:
    controller = _current.get()
    if controller is None:
        raise SessionContextError("use_session must be used within a session_provider")
    return controller
