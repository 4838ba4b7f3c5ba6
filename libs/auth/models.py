from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated principal decoded from a bearer token.

    ``user_id`` is the token subject; stores reference it as
    ``owner_auth_id`` and customer orders as ``customer_auth_id``.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    role: str = "customer"

    @property
    def is_store_owner(self) -> bool:
        return self.role in ("store_owner", "admin")
