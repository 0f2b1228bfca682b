from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    INTEREST = "INTEREST"
    FEE = "FEE"
    TAX = "TAX"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    CORPORATE_ACTION = "CORPORATE_ACTION"
    SPLIT = "SPLIT"
    MERGER = "MERGER"
    SPINOFF = "SPINOFF"


class EntryStatus(str, Enum):
    DRAFT = "DRAFT"
    POSTED = "POSTED"


class PrincipalLevel(str, Enum):
    L2_CLIENT = "L2_CLIENT"
    L3_SUBCLIENT = "L3_SUBCLIENT"
    L4_AGENT = "L4_AGENT"
    L5_ADMIN = "L5_ADMIN"


TRADE_TYPES = frozenset({TransactionType.BUY, TransactionType.SELL})

SECURITY_REQUIRED_TYPES = frozenset({
    TransactionType.BUY,
    TransactionType.SELL,
    TransactionType.DIVIDEND,
    TransactionType.CORPORATE_ACTION,
    TransactionType.SPLIT,
    TransactionType.MERGER,
    TransactionType.SPINOFF,
})

QUANTITY_REQUIRED_TYPES = frozenset({
    TransactionType.BUY,
    TransactionType.SELL,
    TransactionType.SPLIT,
    TransactionType.CORPORATE_ACTION,
})


class ClientProfileRef(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    level: Optional[str] = None
    organization_id: Optional[str] = None
    parent_client_id: Optional[str] = None


class Principal(BaseModel):
    """The authenticated caller as handed over by the identity gateway."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    level: PrincipalLevel
    client_profile: Optional[ClientProfileRef] = None

    @property
    def is_admin(self) -> bool:
        return self.level == PrincipalLevel.L5_ADMIN

    @property
    def client_profile_id(self) -> Optional[str]:
        return self.client_profile.id if self.client_profile else None


class TransactionDraft(BaseModel):
    """
    A ledger row as supplied by a caller, before or after field calculation.

    Every field is optional so that missing values are reported by the
    validator as business-rule violations instead of being rejected at parse
    time.
    """

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    transaction_date: Optional[datetime] = Field(
        default=None, description="When the event happened. Naive values are read as UTC."
    )
    trade_date: Optional[date] = Field(default=None, description="Trade date; defaults to the transaction date.")
    settlement_date: Optional[date] = Field(
        default=None, description="Settlement date; BUY/SELL default to trade date + 2 business days."
    )
    transaction_type: Optional[TransactionType] = None
    security_id: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    amount: Optional[Decimal] = Field(
        default=None, description="Signed cash amount; BUY/SELL default to quantity x price."
    )
    fee: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    entry_status: Optional[EntryStatus] = None
    master_account_id: Optional[str] = None
    client_account_id: Optional[str] = None
    client_profile_id: Optional[str] = None

    @field_validator("transaction_date")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator(
        "security_id", "description", "reference",
        "master_account_id", "client_account_id", "client_profile_id",
    )
    @classmethod
    def _blank_as_missing(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value
