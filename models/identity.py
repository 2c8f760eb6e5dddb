from pydantic import BaseModel, ConfigDict
from typing import Optional


class Identity(BaseModel):
    """Authenticated principal as reported by the auth provider."""
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None
