"""Session state entity - the UI-visible view of the server session.

Hey future me - this is the ONE object the UI reads to decide whether to show
the login prompt, the registration prompt or the OAuth "copy this link" hint.
Only SessionService mutates it (through ``update``); everybody else reads a
``SessionSnapshot`` or subscribes to changes.

Invariants enforced here (not in the service, so no code path can forget them):
- ``pending_authorization_link`` is dropped whenever the phase leaves
  AUTHORIZATION_REQUESTED / AWAITING_EXTERNAL_BROWSER.
- ``pending_authorization_link`` can't be set while in any other phase.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class OAuthPhase(str, Enum):
    """Discrete stage of a third-party authorization attempt."""

    IDLE = "idle"
    AUTHORIZATION_REQUESTED = "authorization_requested"
    AWAITING_EXTERNAL_BROWSER = "awaiting_external_browser"
    AWAITING_CALLBACK = "awaiting_callback"
    EXCHANGING_TOKEN = "exchanging_token"
    VERIFYING_SESSION = "verifying_session"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_in_flight(self) -> bool:
        """True between AUTHORIZATION_REQUESTED and VERIFYING_SESSION (inclusive)."""
        return self in _IN_FLIGHT_PHASES

    @property
    def allows_pending_link(self) -> bool:
        """True while the authorization link may still need manual copying."""
        return self in _LINK_PHASES


_IN_FLIGHT_PHASES = frozenset(
    {
        OAuthPhase.AUTHORIZATION_REQUESTED,
        OAuthPhase.AWAITING_EXTERNAL_BROWSER,
        OAuthPhase.AWAITING_CALLBACK,
        OAuthPhase.EXCHANGING_TOKEN,
        OAuthPhase.VERIFYING_SESSION,
    }
)

_LINK_PHASES = frozenset(
    {OAuthPhase.AUTHORIZATION_REQUESTED, OAuthPhase.AWAITING_EXTERNAL_BROWSER}
)


class UserRole(str, Enum):
    """Role reported by the server for the signed-in user."""

    OWNER = "owner"
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True)
class CurrentUser:
    """Signed-in user as far as the client knows.

    ``external_id`` / ``external_username`` come from the identity provider
    (LinuxDo) when the session was created through OAuth.
    """

    name: str
    role: UserRole | None = None
    external_id: int | None = None
    external_username: str | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable copy of SessionState handed to listeners and tests."""

    is_logged_in: bool = False
    is_login_prompt_visible: bool = False
    is_registration_prompt_visible: bool = False
    oauth_phase: OAuthPhase = OAuthPhase.IDLE
    pending_authorization_link: str | None = None
    current_user: CurrentUser | None = None


SessionListener = Callable[[SessionSnapshot], None]

_FIELD_NAMES = frozenset(f.name for f in fields(SessionSnapshot))


class SessionState:
    """Mutable holder of the current SessionSnapshot with change listeners."""

    def __init__(self) -> None:
        self._snapshot = SessionSnapshot()
        self._listeners: list[SessionListener] = []

    @property
    def is_logged_in(self) -> bool:
        return self._snapshot.is_logged_in

    @property
    def is_login_prompt_visible(self) -> bool:
        return self._snapshot.is_login_prompt_visible

    @property
    def is_registration_prompt_visible(self) -> bool:
        return self._snapshot.is_registration_prompt_visible

    @property
    def oauth_phase(self) -> OAuthPhase:
        return self._snapshot.oauth_phase

    @property
    def pending_authorization_link(self) -> str | None:
        return self._snapshot.pending_authorization_link

    @property
    def current_user(self) -> CurrentUser | None:
        return self._snapshot.current_user

    def snapshot(self) -> SessionSnapshot:
        """Return the current immutable snapshot."""
        return self._snapshot

    def update(self, **changes: Any) -> SessionSnapshot:
        """Apply a batch of field changes atomically and notify listeners.

        Args:
            **changes: Field names of SessionSnapshot mapped to new values

        Returns:
            The new snapshot

        Raises:
            ValueError: Unknown field, or a pending link outside the link phases
        """
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise ValueError(f"Unknown session fields: {sorted(unknown)}")

        new = replace(self._snapshot, **changes)

        if not new.oauth_phase.allows_pending_link:
            if "pending_authorization_link" in changes and changes[
                "pending_authorization_link"
            ]:
                raise ValueError(
                    f"pending_authorization_link not allowed in phase {new.oauth_phase.value}"
                )
            if new.pending_authorization_link is not None:
                new = replace(new, pending_authorization_link=None)

        if new == self._snapshot:
            return new

        old = self._snapshot
        self._snapshot = new
        if old.oauth_phase != new.oauth_phase:
            logger.debug(
                "OAuth phase %s -> %s", old.oauth_phase.value, new.oauth_phase.value
            )
        self._notify(new)
        return new

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: SessionSnapshot) -> None:
        # A broken UI listener must never abort a state transition
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener %r failed", listener)
