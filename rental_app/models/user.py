from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """The signed-in account as the auth layer sees it."""
    id: str
    email: str
    email_confirmed: bool = False


class UserProfile(BaseModel):
    """
    Public profile of an account. Owned by exactly one user and changed
    only through explicit profile edits.
    """
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.email


class ProfilePatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: Optional[str] = Field(default=None, max_length=80)
    last_name: Optional[str] = Field(default=None, max_length=80)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[0-9 ()-]{6,20}$")
    avatar_url: Optional[str] = None
