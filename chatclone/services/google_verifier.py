"""
Google Sign-In ID token verification.
google-auth checks signature, issuer, expiry and audience; we only extract the claims.
"""
import logging
from dataclasses import dataclass

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from chatclone.config import get_settings
from chatclone.errors import InvalidCredential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleIdentity:
    subject_id: str
    email: str
    name: str | None = None
    picture: str | None = None


class GoogleCredentialVerifier:
    """Read-only verification against Google. Never retries."""

    def __init__(self, client_id: str, request=None):
        self._client_id = client_id
        self._request = request or google_requests.Request()

    def verify(self, token: str) -> GoogleIdentity:
        if not token or not token.strip():
            raise InvalidCredential("Missing Google token", status_code=401)
        try:
            claims = id_token.verify_oauth2_token(token, self._request, audience=self._client_id)
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            logger.warning("Google token verification failed: %s", e)
            raise InvalidCredential("Invalid Google token", status_code=401) from e

        subject_id = claims.get("sub")
        email = claims.get("email")
        if not subject_id:
            raise InvalidCredential("Google token has no subject", status_code=401)
        if not email:
            raise InvalidCredential("Email required", status_code=401)
        return GoogleIdentity(
            subject_id=subject_id,
            email=email,
            name=claims.get("name") or None,
            picture=claims.get("picture") or None,
        )


def get_google_verifier() -> GoogleCredentialVerifier:
    return GoogleCredentialVerifier(get_settings().google_client_id)
