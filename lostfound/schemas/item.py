from datetime import datetime

from pydantic import BaseModel, Field

from lostfound.models.item import ItemStatus


class AccountRef(BaseModel):
    id: str
    employee_number: str
    first_name: str
    last_name: str

    model_config = {"from_attributes": True}


# ── Found items ──────────────────────────────────────────────

class ItemCreate(BaseModel):
    flight_number: str = Field(..., min_length=1, max_length=20)
    date_found: datetime
    location: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    image_urls: list[str] = []


class ItemUpdate(BaseModel):
    flight_number: str | None = Field(None, min_length=1, max_length=20)
    date_found: datetime | None = None
    location: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(None, min_length=1, max_length=100)
    image_urls: list[str] | None = None
    status: ItemStatus | None = None


class ItemOut(BaseModel):
    id: str
    flight_number: str
    date_found: datetime
    location: str
    description: str
    category: str
    image_urls: list[str] | None
    status: str
    archived: bool
    found_by: str | None
    finder: AccountRef | None = None
    delivered_by: str | None = None
    deliverer: AccountRef | None = None
    delivered_at: datetime | None = None
    customer_name: str | None = None
    customer_last_name: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Delivery ─────────────────────────────────────────────────

class DeliverRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_last_name: str = Field(..., min_length=1, max_length=100)
    customer_signature: str | None = None
    delivered_at: datetime | None = None


class DeliveredUpdate(BaseModel):
    """Correction of a delivered record; nulls leave a field unchanged."""
    flight_number: str | None = Field(None, min_length=1, max_length=20)
    location: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    category: str | None = Field(None, min_length=1, max_length=100)
    image_urls: list[str] | None = None
    customer_name: str | None = Field(None, min_length=1, max_length=100)
    customer_last_name: str | None = Field(None, min_length=1, max_length=100)
    customer_signature: str | None = None
