from pydantic import BaseModel, Field


class AccountOut(BaseModel):
    id: str
    employee_number: str
    first_name: str
    last_name: str
    role: str
    permissions: list[str]

    model_config = {"from_attributes": True}


# ── Self-registration ───────────────────────────────────────

class RegisterRequest(BaseModel):
    """New accounts always start as employees with the employee baseline."""
    employee_number: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


# ── Login ────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    employee_number: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AccountOut


# ── Password ─────────────────────────────────────────────────

class ResetPasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class MessageResponse(BaseModel):
    message: str
