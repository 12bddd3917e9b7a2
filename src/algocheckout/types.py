"""
Type definitions for checkout payments
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Longest free-text note accepted on a checkout
MAX_NOTE_LENGTH = 1000

PaymentMethod = Literal["contract", "direct"]


class CheckoutStatus(str, Enum):
    """Checkout lifecycle status"""

    PENDING = "pending"
    PAID = "paid"
    NOTIFIED = "notified"
    EXPIRED = "expired"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CheckoutStatus.NOTIFIED, CheckoutStatus.EXPIRED, CheckoutStatus.FAILED)


class Checkout(BaseModel):
    """Checkout record from the checkout API"""

    id: str
    payment_method: PaymentMethod = Field("contract", alias="paymentMethod")
    program_id: Optional[int] = Field(None, alias="programId", ge=0)
    program_address: Optional[str] = Field(None, alias="programAddress")
    merchant_address: str = Field(alias="merchantAddress")
    merchant_name: Optional[str] = Field(None, alias="merchantName")
    amount: int = Field(gt=0)
    asset_id: int = Field(alias="assetId", ge=0)
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)
    status: CheckoutStatus = CheckoutStatus.PENDING
    created_at: datetime = Field(alias="createdAt")
    expires_at: datetime = Field(alias="expiresAt")

    class Config:
        populate_by_name = True

    @field_validator("created_at", "expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_validity_window(self) -> "Checkout":
        if self.expires_at <= self.created_at:
            raise ValueError("expiresAt must be later than createdAt")
        return self


class CreateCheckoutRequest(BaseModel):
    """Request body for creating a checkout"""

    merchant_address: str = Field(alias="merchantAddress")
    merchant_name: Optional[str] = Field(None, alias="merchantName")
    amount: int = Field(gt=0)
    asset_id: int = Field(alias="assetId", ge=0)
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)
    payment_method: PaymentMethod = Field("contract", alias="paymentMethod")
    expires_in_seconds: Optional[int] = Field(None, alias="expiresInSeconds", gt=0)
    webhook_url: Optional[str] = Field(None, alias="webhookUrl")

    class Config:
        populate_by_name = True


class CreateCheckoutResponse(BaseModel):
    """Response of checkout creation"""

    id: str
    program_address: Optional[str] = Field(None, alias="programAddress")
    status: CheckoutStatus
    expires_at: datetime = Field(alias="expiresAt")
    checkout_url: Optional[str] = Field(None, alias="checkoutUrl")

    class Config:
        populate_by_name = True


class PaymentResult(BaseModel):
    """Outcome of a confirmed payment"""

    checkout_id: str = Field(alias="checkoutId")
    tx_id: str = Field(alias="txId")
    confirmed_round: Optional[int] = Field(None, alias="confirmedRound")
    group_id: Optional[str] = Field(None, alias="groupId")

    class Config:
        populate_by_name = True
