"""Google ID token verification."""

import asyncio
import logging
from dataclasses import dataclass

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from astroshare.exceptions import InvalidGoogleCredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleIdentity:
    """Identity claims taken from a verified Google ID token."""

    sub: str
    email: str | None
    picture: str | None = None


class GoogleIdentityVerifier:
    """Verifies Google-issued ID tokens against this app's OAuth client id."""

    def __init__(self, client_id: str | None):
        self.client_id = client_id
        self._transport = google_requests.Request()

    def _verify_sync(self, credential: str) -> dict:
        return id_token.verify_oauth2_token(credential, self._transport, audience=self.client_id)

    async def verify(self, credential: str) -> GoogleIdentity:
        """Verify a credential and return the identity it asserts.

        Raises InvalidGoogleCredentialError if Google rejects it, or if no
        client id is configured to check the token's audience against.
        """
        if not self.client_id:
            logger.error("Google client id is not configured, rejecting credential")
            raise InvalidGoogleCredentialError()
        try:
            payload = await asyncio.to_thread(self._verify_sync, credential)
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            logger.warning(f"Google credential rejected: {e}")
            raise InvalidGoogleCredentialError() from None

        # An address Google has not verified cannot be used to match accounts
        email = payload.get("email") if payload.get("email_verified", True) else None
        return GoogleIdentity(
            sub=payload["sub"],
            email=email,
            picture=payload.get("picture"),
        )
