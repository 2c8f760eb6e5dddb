"""API request and response models."""

from pydantic import Base64Bytes, BaseModel, Field
from typing import List, Optional

from models import Identity, Profile


class SessionResponse(BaseModel):
    """Snapshot of the process-wide session."""
    status: str
    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    error: Optional[str] = None
    location: str


class GoogleSignInRequest(BaseModel):
    credential: str = Field(min_length=1)


class PhoneCodeRequest(BaseModel):
    phone_number: str
    verifier_token: Optional[str] = None


class PhoneCodeResponse(BaseModel):
    verification_id: str
    phone_number: str


class PhoneConfirmRequest(BaseModel):
    verification_id: str
    code: str


class PhotoPayload(BaseModel):
    """A photo sent inline as base64."""
    filename: str
    data: Base64Bytes
    content_type: str = "image/jpeg"


class ProfilePhotoRequest(PhotoPayload):
    pass


class NotificationResponse(BaseModel):
    id: str
    message: str
    kind: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
    partial: Optional[bool] = None
    completed_steps: Optional[List[str]] = None
    failed_step: Optional[str] = None
