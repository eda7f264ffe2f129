from datetime import datetime

from pydantic import BaseModel, Field


class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z][a-z0-9_]*$")
    description: str | None = None
    component: str | None = None
    action: str | None = None


class PermissionUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100, pattern=r"^[a-z][a-z0-9_]*$")
    description: str | None = None
    component: str | None = None
    action: str | None = None


class PermissionOut(BaseModel):
    id: str
    name: str
    description: str | None
    component: str | None
    action: str | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PermissionSeedOut(BaseModel):
    """Entry of the built-in permission list (no database id)."""
    name: str
    description: str
    component: str
    action: str

    model_config = {"from_attributes": True}
