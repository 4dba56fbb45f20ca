import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from app.config import settings
from app.core.exceptions import AuthError, ServerError, ServiceUnavailableError

logger = logging.getLogger(__name__)

INVALID_IDENTITY_MESSAGE = "Invalid identity token."


@dataclass
class ExternalIdentity:
    subject: str
    email: str
    display_name: str
    photo_url: Optional[str] = None
    email_verified: bool = False


class GoogleIdentityVerifier:
    """Verifies Google ID tokens issued for settings.google_client_id."""

    def __init__(self, client_id: Optional[str], timeout: float):
        self.client_id = client_id
        self.timeout = timeout
        self._transport = google_requests.Request()

    def _verify_sync(self, token: str) -> dict:
        return google_id_token.verify_oauth2_token(token, self._transport, self.client_id)

    async def verify(self, token: str) -> ExternalIdentity:
        if not self.client_id:
            logger.error("External login attempted but GOOGLE_CLIENT_ID is not configured")
            raise ServerError()
        try:
            claims = await asyncio.wait_for(asyncio.to_thread(self._verify_sync, token), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Identity provider did not answer in time")
            raise ServiceUnavailableError()
        except google_exceptions.TransportError as e:
            logger.error(f"Identity provider transport error: {e}")
            raise ServiceUnavailableError()
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            logger.info(f"Rejected external identity token: {e}")
            raise AuthError(INVALID_IDENTITY_MESSAGE)

        email = claims.get("email")
        if not claims.get("sub") or not email:
            raise AuthError(INVALID_IDENTITY_MESSAGE)
        return ExternalIdentity(
            subject=claims["sub"],
            email=email.lower(),
            display_name=claims.get("name") or email.split("@")[0],
            photo_url=claims.get("picture"),
            # Google sends a bool, older tokens the string "true"
            email_verified=claims.get("email_verified") in (True, "true"),
        )


_verifier: Optional[GoogleIdentityVerifier] = None


def get_identity_verifier() -> GoogleIdentityVerifier:
    global _verifier
    if _verifier is None:
        _verifier = GoogleIdentityVerifier(settings.google_client_id, settings.identity_timeout_seconds)
    return _verifier
