from pydantic import BaseModel, ConfigDict


class BaseGolfModel(BaseModel):
    """Shared configuration for the domain models."""
    model_config = ConfigDict(validate_assignment=True)
