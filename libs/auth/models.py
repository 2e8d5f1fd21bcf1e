from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated user from Supabase.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"

    @property
    def is_service_role(self) -> bool:
        return self.role == "service_role"
