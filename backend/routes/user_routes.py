from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_requester
from backend.core import config
from backend.core.requester import Requester
from backend.database import get_db
from backend.schemas.common import MessageResponse
from backend.schemas.user import AvatarResponse, ChangePasswordRequest, ProfileUpdateRequest, UserResponse
from backend.services import accounts

router = APIRouter(tags=['users'])


@router.get('/profile', response_model=UserResponse)
def get_profile(requester: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    return accounts.get_profile(db, requester)


@router.put('/profile', response_model=UserResponse)
def update_profile(
    data: ProfileUpdateRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return accounts.update_profile(db, requester, data.model_dump(exclude_unset=True))


@router.put('/change-password', response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    accounts.change_password(
        db,
        requester,
        current_password=data.current_password,
        new_password=data.new_password,
    )
    return MessageResponse(message='Password changed successfully')


@router.post('/upload-avatar', response_model=AvatarResponse)
def upload_avatar(
    avatar: UploadFile = File(...),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    # Read one byte past the limit so oversized uploads are still rejected.
    data = avatar.file.read(config.MAX_AVATAR_BYTES + 1)
    url = accounts.replace_avatar(db, requester, data, avatar.content_type)
    return AvatarResponse(message='Profile picture uploaded successfully', profile_picture_url=url)
