from fastapi import Depends
from sqlalchemy.orm import Session

from chatclone.database import get_db
from chatclone.repositories.chat_repository import ChatRepository
from chatclone.services.auth_service import AuthService
from chatclone.services.chat_service import ChatService
from chatclone.services.completion_client import CompletionClient, get_completion_client
from chatclone.services.google_verifier import GoogleCredentialVerifier, get_google_verifier


def get_chat_repository(db: Session = Depends(get_db)) -> ChatRepository:
    """Persistence gateway bound to the request's DB session."""
    return ChatRepository(db)


def get_chat_service(
    repository: ChatRepository = Depends(get_chat_repository),
    completion_client: CompletionClient = Depends(get_completion_client),
) -> ChatService:
    return ChatService(repository, completion_client)


def get_auth_service(
    repository: ChatRepository = Depends(get_chat_repository),
    verifier: GoogleCredentialVerifier = Depends(get_google_verifier),
) -> AuthService:
    return AuthService(repository, verifier)
