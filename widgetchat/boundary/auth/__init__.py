"""Bearer-token verification."""

from widgetchat.boundary.auth.token_verifier import AuthenticatedUser, TokenVerifier

__all__ = ["AuthenticatedUser", "TokenVerifier"]
