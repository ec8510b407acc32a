from fastapi import APIRouter, Depends

from chatclone.auth import get_current_user
from chatclone.models.user import User
from chatclone.schemas.user import UserResponse

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/user", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
