"""
Client-side session state.

SessionContext is the single process-wide holder of the current
principal, its profile and the `loading` flag. Consumers subscribe
instead of reading ambient globals:

    ctx = SessionContext(backend, loader)
    unsubscribe = ctx.subscribe(render)
    ctx.sign_in(email, password)

Guard decisions must treat `loading=True` as pending. A profile load that
finishes after the principal changed (sign-out, another sign-in) is
discarded.

CatalogueView keeps the locally cached note list in sync with the
server: it only ever holds the last successful read or a change the
server already confirmed.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Callable, Protocol

from app.core.errors import PortalError
from app.models.profile import Profile
from app.schemas.auth import AuthResult, Principal, ProfileSeed
from app.schemas.note import NoteRead
from app.services.visibility import visible_notes

logger = logging.getLogger(__name__)


class SessionBackend(Protocol):
    def sign_up(self, email: str, password: str, seed: ProfileSeed) -> Principal: ...

    def sign_in(self, email: str, password: str) -> AuthResult: ...

    def sign_out(self, access_token: str) -> None: ...

    def refresh(self, refresh_token: str) -> AuthResult: ...


ProfileLoader = Callable[[uuid.UUID], Profile]
Listener = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    principal: Principal | None = None
    profile: Profile | None = None
    loading: bool = False
    error: PortalError | None = None

    @property
    def authenticated(self) -> bool:
        # Fail-closed: a principal without a resolved profile is not enough.
        return self.profile is not None and not self.loading


class SessionContext:
    def __init__(
        self,
        backend: SessionBackend,
        load_profile: ProfileLoader,
        refresh_token: str | None = None,
    ):
        """
        Args:
            refresh_token: token persisted by a previous run; the session
                is restored from it when the first subscriber arrives.
        """
        self.backend = backend
        self.load_profile = load_profile
        self._state = SessionState()
        self._listeners: list[Listener] = []
        self._started = False
        self._generation = 0
        self._access_token: str | None = None
        self._refresh_token = refresh_token

    @property
    def state(self) -> SessionState:
        return self._state

    # ----- Observers -----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener; it immediately receives the current state.
        Returns a callable that removes the listener.
        """
        if not self._started:
            self._start()
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _start(self) -> None:
        """Restore the held session, if any, before the first listener runs."""
        self._started = True
        if not self._refresh_token or self._state.principal is not None:
            return
        try:
            self.refresh()
        except PortalError as exc:
            logger.warning("Could not restore session: %s", exc.message)
            self._refresh_token = None
            self._set_state(SessionState(error=exc))
            return
        logger.debug("Session restored for %s", self._state.principal.id)

    def _teardown(self) -> None:
        self._generation += 1
        self._access_token = None
        self._refresh_token = None
        self._set_state(SessionState())
        self._started = False
        logger.debug("Session context torn down")

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # ----- Lifecycle -----

    def sign_up(self, email: str, password: str, seed: ProfileSeed) -> Principal:
        """
        Register a new account. The current session is not changed: the
        user signs in once the provider's verification email is handled.
        """
        return self.backend.sign_up(email, password, seed)

    def sign_in(self, email: str, password: str) -> SessionState:
        result = self.backend.sign_in(email, password)
        self._access_token = result.access_token
        self._refresh_token = result.refresh_token
        self._change_principal(result.principal)
        return self._state

    def sign_out(self) -> None:
        """
        Invalidate the provider session and clear local state. Local
        state is cleared even when the provider call fails; the error
        still propagates.
        """
        token = self._access_token
        try:
            if token:
                self.backend.sign_out(token)
        finally:
            self._teardown()

    def refresh(self) -> SessionState:
        if not self._refresh_token:
            return self._state
        result = self.backend.refresh(self._refresh_token)
        self._access_token = result.access_token
        self._refresh_token = result.refresh_token

        current = self._state.principal
        if current is None or current.id != result.principal.id:
            self._change_principal(result.principal)
        else:
            self._set_state(replace(self._state, principal=result.principal))
        return self._state

    @property
    def access_token(self) -> str | None:
        return self._access_token

    # ----- Profile resolution -----

    def _change_principal(self, principal: Principal) -> None:
        self._generation += 1
        generation = self._generation
        self._set_state(SessionState(principal=principal, loading=True))

        try:
            profile = self.load_profile(principal.id)
        except PortalError as exc:
            if self._is_stale(generation, principal):
                return
            logger.warning("Profile load failed for %s: %s", principal.id, exc.message)
            self._set_state(SessionState(principal=principal, loading=False, error=exc))
            return

        if self._is_stale(generation, principal):
            logger.debug("Discarding stale profile for %s", principal.id)
            return
        self._set_state(SessionState(principal=principal, profile=profile, loading=False))

    def _is_stale(self, generation: int, principal: Principal) -> bool:
        current = self._state.principal
        return (
            generation != self._generation
            or current is None
            or current.id != principal.id
        )


class CatalogueView:
    """
    Local copy of the note catalogue.

    Holds either the last successful fetch or a server-confirmed change.
    A failed fetch leaves the previous snapshot in place.
    """

    def __init__(self, fetch: Callable[[], list[NoteRead]]):
        self.fetch = fetch
        self._notes: tuple[NoteRead, ...] = ()

    @property
    def notes(self) -> tuple[NoteRead, ...]:
        return self._notes

    def refresh(self) -> tuple[NoteRead, ...]:
        self._notes = tuple(self.fetch())
        return self._notes

    def apply_confirmed_delete(self, note_id: uuid.UUID) -> None:
        """Call only after the server confirmed the deletion."""
        self._notes = tuple(n for n in self._notes if n.id != note_id)

    def visible_for(self, profile: Profile | None) -> list[NoteRead]:
        return visible_notes(profile, list(self._notes))
