"""Request models for the HTTP API."""

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class CheckoutRequest(BaseModel):
    """Body of POST /api/create-checkout-session."""

    email: EmailStr
    mode: Literal["payment", "subscription"] = "payment"


class GenerateQuery(BaseModel):
    """Query string of POST /api/generate."""

    session_id: Optional[str] = None
    kind: Literal["one_time", "subscription", "demo"] = "demo"

    @field_validator("session_id", mode="before")
    @classmethod
    def strip_session(cls, value):
        return _blank_to_none(value) if isinstance(value, str) else value


class GenerateForm(BaseModel):
    """Multipart form fields of POST /api/generate."""

    kind: Literal["one_time", "subscription", "demo"] = "demo"
    address: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    details: Optional[str] = None

    @field_validator("address", mode="before")
    @classmethod
    def strip_address(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", "details", mode="before")
    @classmethod
    def strip_optional(cls, value):
        return _blank_to_none(value) if isinstance(value, str) else value

    @model_validator(mode="after")
    def email_required_for_paid_kits(self):
        if self.kind != "demo" and not self.email:
            raise ValueError("email is required for paid kits")
        return self
