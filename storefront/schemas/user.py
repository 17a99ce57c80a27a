# storefront/schemas/user.py
from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Личность, извлеченная из JWT провайдера аутентификации."""
    id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None
    is_admin: bool = False


class UserBrief(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None

    class Config:
        from_attributes = True
