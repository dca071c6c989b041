"""
User and ad models.
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional


class User(BaseModel):
    """An account holding a points balance."""
    id: str = Field(..., min_length=1, description="Login name")
    password: Optional[str] = Field(None, description="Login password")
    points: int = Field(default=0, ge=0, description="Points balance")
    is_admin: bool = Field(default=False, description="Whether the account is an admin")

    def public_dict(self) -> dict:
        """User data safe to send to the browser."""
        return self.model_dump(exclude={"password"})


class AdContent(BaseModel):
    """An ad creative played during the AD_WATCH step."""
    type: Literal["image", "video"] = Field(..., description="Creative media type")
    data_url: str = Field(..., min_length=1, description="Inline data URL of the creative")
    name: str = Field(..., min_length=1, description="Unique name of the creative")
