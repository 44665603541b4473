"""Session capability shared by every platform-aware collaborator.

A session is either anonymous (device-local storage only) or authenticated
with a platform identity. Collaborator factories branch once on this variant
instead of re-checking authentication at each call site.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .backend.client import BackendError, PlatformBackend
from .errors import TransportError, UnauthenticatedError, ValidationError
from .io.local_store import KeyValueStore
from .parsing import normalize_optional_string
from .telemetry.logger import EventLogger


SESSION_TOKEN_KEY = "sessionAccessToken"

_log = EventLogger("session")


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated platform identity.

    Attributes:
        user_id: Platform user id.
        email: Account email, when the platform reports one.
        access_token: Bearer token for user-scoped requests.
    """

    user_id: str
    email: str | None
    access_token: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class AnonymousSession:
    """Session without an identity; storage stays on this device."""

    @property
    def is_authenticated(self) -> bool:
        """Return False; anonymous sessions carry no identity."""

        return False


@dataclass(frozen=True, slots=True)
class AuthenticatedSession:
    """Session bound to a verified platform identity."""

    identity: Identity

    @property
    def is_authenticated(self) -> bool:
        """Return True; the session carries a verified identity."""

        return True


Session = AnonymousSession | AuthenticatedSession


def require_identity(session: Session, action: str) -> Identity:
    """Return the session identity or raise when the session is anonymous."""

    if isinstance(session, AuthenticatedSession):
        return session.identity
    raise UnauthenticatedError(
        f"You must be signed in to {action}.",
        hint="Run `voicedash login` and retry.",
    )


def require_backend(backend: PlatformBackend | None) -> PlatformBackend:
    """Return a configured backend or raise a config validation error."""

    if backend is None:
        raise ValidationError(
            "Platform backend is not configured.",
            field="backend_url",
            hint=(
                "Set `VOICEDASH_BACKEND_URL` and `VOICEDASH_BACKEND_ANON_KEY`, "
                "or `backend_url`/`backend_anon_key` in the config file."
            ),
        )
    return backend


def resolve_session(
    access_token: str | None,
    backend: PlatformBackend | None,
) -> Session:
    """Resolve a session from an optional access token.

    No token yields an anonymous session. A token is verified against the
    platform; rejected tokens raise `UnauthenticatedError`.
    """

    token = normalize_optional_string(access_token)
    if token is None:
        return AnonymousSession()

    platform = require_backend(backend)
    try:
        user = platform.get_user(token)
    except BackendError as exc:
        if exc.failure_kind == "unauthenticated":
            raise UnauthenticatedError(
                "The stored session is expired or invalid.",
                hint="Run `voicedash login` to sign in again.",
            ) from exc
        raise TransportError(str(exc), status_code=exc.status_code) from exc

    identity = Identity(
        user_id=user["id"],
        email=normalize_optional_string(user.get("email")),
        access_token=token,
    )
    _log.info("resolved", user_id=identity.user_id)
    return AuthenticatedSession(identity=identity)


def sign_in(
    backend: PlatformBackend,
    token_store: KeyValueStore,
    *,
    email: str,
    password: str,
) -> Identity:
    """Sign in with email/password and persist the access token locally."""

    try:
        token = backend.sign_in_with_password(email, password)
    except BackendError as exc:
        if exc.status_code in {400, 401, 403}:
            raise UnauthenticatedError(
                "Sign-in was rejected by the platform.",
                hint="Check the email and password and retry.",
            ) from exc
        raise TransportError(str(exc), status_code=exc.status_code) from exc

    session = resolve_session(token, backend)
    identity = require_identity(session, "finish signing in")
    token_store.set(SESSION_TOKEN_KEY, token)
    _log.info("signed_in", user_id=identity.user_id)
    return identity


def sign_out(backend: PlatformBackend | None, token_store: KeyValueStore) -> bool:
    """Forget the local access token and revoke it when possible.

    Returns:
        `True` when a stored token existed.
    """

    token = normalize_optional_string(token_store.get(SESSION_TOKEN_KEY))
    if token is None:
        return False
    if backend is not None:
        try:
            backend.sign_out(token)
        except BackendError as exc:
            _log.warning("revoke_failed", failure_kind=exc.failure_kind)
    token_store.delete(SESSION_TOKEN_KEY)
    _log.info("signed_out")
    return True
