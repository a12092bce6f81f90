from __future__ import annotations

from pydantic import BaseModel


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    establishment_id: str
    user_id: str
    role: str = "manager"
