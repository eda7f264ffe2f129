from datetime import datetime

from pydantic import BaseModel, Field

from lostfound.models.account import AccountRole


class AccountDetail(BaseModel):
    id: str
    employee_number: str
    first_name: str
    last_name: str
    role: str
    permissions: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AccountCreate(BaseModel):
    """Created by a user manager; grants start at the role's baseline."""
    employee_number: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: AccountRole = AccountRole.EMPLOYEE


class AccountUpdate(BaseModel):
    """Partial update.  Changing ``role`` resets grants to the new baseline."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: AccountRole | None = None
    password: str | None = Field(None, min_length=6)


class GrantsUpdate(BaseModel):
    permissions: list[str]


class GrantsOut(BaseModel):
    account_id: str
    role: str
    permissions: list[str]


class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6)
