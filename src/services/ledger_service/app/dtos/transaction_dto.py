# src/services/ledger_service/app/dtos/transaction_dto.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ledger_common.transaction_domain import (
    EntryStatus,
    TransactionDraft,
    TransactionType,
    account_reference_of,
)


class TransactionRecord(BaseModel):
    """
    Represents a single ledger row for API responses.
    """
    id: int
    transaction_date: datetime
    trade_date: Optional[date] = None
    settlement_date: Optional[date] = None
    transaction_type: str
    security_id: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    amount: Decimal
    fee: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    entry_status: str
    master_account_id: Optional[str] = None
    client_account_id: Optional[str] = None
    client_profile_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def account_id(self) -> Optional[str]:
        """The type-tagged account id accepted by the `account_id` filter."""
        reference = account_reference_of(self.master_account_id, self.client_account_id)
        return reference.tagged if reference else None

    @computed_field
    @property
    def account_type(self) -> str:
        return "Master" if self.master_account_id else "Client"


class Pagination(BaseModel):
    page: int = Field(..., description="1-based page number.")
    limit: int = Field(..., description="Page size after clamping to the configured maximum.")
    total: int = Field(..., description="Total number of rows matching the filters.")
    total_pages: int


class PaginatedTransactionResponse(BaseModel):
    """
    Represents the paginated API response for a ledger query.
    """
    transactions: List[TransactionRecord] = Field(..., description="Rows on the current page, newest first.")
    pagination: Pagination


class TransactionCreateRequest(TransactionDraft):
    """Request body for a single create; every derived field may be omitted."""


class TransactionUpdateRequest(BaseModel):
    """Partial update body. Only the fields present in the payload are applied."""

    model_config = ConfigDict(extra="forbid")

    transaction_date: Optional[datetime] = None
    trade_date: Optional[date] = None
    settlement_date: Optional[date] = None
    transaction_type: Optional[TransactionType] = None
    security_id: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    entry_status: Optional[EntryStatus] = None
    master_account_id: Optional[str] = None
    client_account_id: Optional[str] = None
    client_profile_id: Optional[str] = None


class DuplicateAdvisory(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    outcome: str
    is_duplicate: bool
    message: Optional[str] = None
    existing_transaction_id: Optional[int] = None
    existing_transaction: Optional[TransactionRecord] = Field(
        None, description="The stored row sharing the natural key, when one was found."
    )


class TransactionCreateResponse(BaseModel):
    transaction: TransactionRecord
    duplicate: Optional[DuplicateAdvisory] = Field(
        None, description="Advisory only; present when the duplicate check ran."
    )


class TransactionDeleteResponse(BaseModel):
    message: str
    id: int


class CashBalanceResponse(BaseModel):
    balance: Decimal = Field(..., description="Signed cash effect of every matching row.")
