"""
High-level use cases for the CodeQuest session core.

- ``session_service.SessionController`` owns the active session: login,
  signup, logout and progress/preference updates.
- ``session_context`` scopes a controller for code that cannot receive it as
  an argument: ``with session_provider(controller): ...`` then
  ``use_session()`` anywhere below; outside a provider ``use_session()``
  raises ``SessionContextError``.

Consumers should hold a ``SessionController`` (passed in explicitly, or
scoped with ``session_provider``) instead of manipulating the account store
directly.
"""

from .session_context import SessionContextError, session_provider, use_session
from .session_service import InsufficientBalanceError, SessionController, SessionState

__all__ = [
    "InsufficientBalanceError",
    "SessionContextError",
    "SessionController",
    "SessionState",
    "session_provider",
    "use_session",
]
