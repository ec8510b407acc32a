"""Google sign-in: verify the ID token, find or create the user, issue a session token."""
import asyncio
import logging

from chatclone.auth import create_access_token
from chatclone.models.user import User
from chatclone.repositories.chat_repository import ChatRepository
from chatclone.services.google_verifier import GoogleCredentialVerifier

logger = logging.getLogger(__name__)

WELCOME_CHAT_TITLE = "Welcome Chat"


class AuthService:
    def __init__(self, repository: ChatRepository, verifier: GoogleCredentialVerifier):
        self._repo = repository
        self._verifier = verifier

    def _get_or_create_user(self, google_token: str) -> User:
        identity = self._verifier.verify(google_token)

        user = self._repo.get_user_by_provider_id(identity.subject_id)
        if user is not None:
            return user

        user = self._repo.create_user(
            email=identity.email,
            name=identity.name or identity.email.split("@")[0],
            google_id=identity.subject_id,
            picture=identity.picture,
        )
        # Default chat for new users
        self._repo.create_conversation(user.id, WELCOME_CHAT_TITLE)
        logger.info("Created user %s on first Google sign-in", user.id)
        return user

    async def sign_in_with_google(self, google_token: str) -> tuple[str, User]:
        """Returns (session_token, user). Raises InvalidCredential on a bad Google token."""
        loop = asyncio.get_event_loop()
        user = await loop.run_in_executor(None, lambda: self._get_or_create_user(google_token))
        return create_access_token(user.id), user
