from pydantic import BaseModel


class UserCreate(BaseModel):
    name: str
    display_name: str | None = None


class UserResponse(BaseModel):
    id: str
    name: str
    created_at: str
    display_name: str | None = None
