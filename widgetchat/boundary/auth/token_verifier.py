"""
Bearer-token verification.

Decodes HMAC-signed JWTs issued by the external auth service and resolves the
referenced account. Issuance and password handling live elsewhere.

Dependencies: PyJWT, sqlalchemy, widgetchat.boundary.db
System role: Auth capability for the connection layer and REST routers
"""

import logging
from dataclasses import dataclass

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from widgetchat.boundary.db.CRUD.user_crud import user_crud
from widgetchat.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Resolved bearer identity."""

    user_id: str
    is_active: bool
    role: str = "user"


class TokenVerifier:
    """
    Verify bearer tokens against the signing secret and the users table.

    Args:
        secret: HMAC secret shared with the token issuer
        algorithm: JWT algorithm (e.g. "HS256")
        session_factory: Async session factory for the account lookup
    """

    def __init__(
        self,
        secret: str,
        algorithm: str,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._session_factory = session_factory

    def decode(self, token: str) -> str:
        """
        Decode a token and return the user id claim.

        Tokens carry the id as `userId`, or as the standard `sub` claim.

        Raises:
            AuthenticationError: If the token is expired, malformed or has no user claim
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid token", details={"reason": str(e)}) from e

        user_id = payload.get("userId") or payload.get("sub")
        if not user_id:
            raise AuthenticationError("Token has no user claim")
        return str(user_id)

    async def verify(self, token: str) -> AuthenticatedUser:
        """
        Resolve a token to an account.

        Returns:
            AuthenticatedUser, possibly inactive

        Raises:
            AuthenticationError: If the token is invalid or the user does not exist
        """
        user_id = self.decode(token)
        async with self._session_factory() as session:
            user = await user_crud.get_by_id(session, user_id)
        if user is None:
            raise AuthenticationError("User not found", details={"user_id": user_id})
        return AuthenticatedUser(user_id=user.id, is_active=user.is_active, role=user.role)

    async def authenticate_optional(self, token: str | None) -> AuthenticatedUser | None:
        """
        Resolve a connection credential, falling back to anonymous.

        Missing, invalid or unknown tokens and disabled accounts all yield
        None. The connection is never refused.
        """
        if not token:
            return None
        try:
            user = await self.verify(token)
        except AuthenticationError as e:
            logger.info(
                "Bearer credential rejected, continuing anonymously",
                extra={"reason": e.message},
            )
            return None
        except SQLAlchemyError as e:
            logger.warning(
                "User lookup failed, continuing anonymously",
                extra={"error": str(e)},
            )
            return None

        if not user.is_active:
            logger.info("Inactive account connected anonymously", extra={"user_id": user.user_id})
            return None
        return user
