import logging

from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import AuthError
from app.core.gateways import IdentityProvider
from app.schemas.auth import AuthResult, Principal, ProfileSeed
from app.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

settings = get_settings()


class AuthService:
    """
    Identity lifecycle: sign-up, sign-in, sign-out, token refresh.

    Stateless; the identity provider owns sessions and sends the
    verification email after sign-up. Creating the profile is part of
    sign-up, not a separate call.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        profiles: ProfileService,
        min_password_length: int | None = None,
    ):
        self.identity = identity
        self.profiles = profiles
        self.min_password_length = min_password_length or settings.MIN_PASSWORD_LENGTH

    def _check_password(self, password: str) -> None:
        if len(password) < self.min_password_length:
            raise AuthError(
                "weak_password",
                f"Password must be at least {self.min_password_length} characters",
            )

    def sign_up(
        self,
        session: Session,
        email: str,
        password: str,
        seed: ProfileSeed,
    ) -> Principal:
        """
        Create the identity, then its profile.

        Raises:
            AuthError: weak password (before any provider call) or any
                provider failure.
            WriteError: the profile row could not be stored. The identity
                already exists at that point.
        """
        self._check_password(password)

        principal = self.identity.create_identity(email, password)
        logger.info("Created identity %s (%s)", principal.id, seed.role)

        self.profiles.create_from_seed(session, principal, seed)
        return principal

    def sign_in(self, email: str, password: str) -> AuthResult:
        return self.identity.authenticate(email, password)

    def sign_out(self, access_token: str) -> None:
        self.identity.invalidate_session(access_token)

    def refresh(self, refresh_token: str) -> AuthResult:
        return self.identity.refresh_session(refresh_token)
