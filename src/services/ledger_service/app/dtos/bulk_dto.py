# src/services/ledger_service/app/dtos/bulk_dto.py
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .transaction_dto import TransactionRecord

BulkOperation = Literal["create", "post", "delete_drafts", "update_status"]


class BulkFilters(BaseModel):
    account_id: Optional[str] = Field(None, description="Type-tagged account id, e.g. 'master_<id>'.")
    transaction_ids: Optional[List[int]] = None


class BulkRequest(BaseModel):
    operation: BulkOperation
    transactions: Optional[List[Dict[str, Any]]] = Field(
        None, description="Raw rows for 'create'. Each row is validated independently."
    )
    filters: BulkFilters = Field(default_factory=BulkFilters)
    transaction_ids: Optional[List[int]] = Field(None, description="Target ids for 'update_status'.")
    new_status: Optional[str] = None


class BulkRowSuccessRecord(BaseModel):
    row: int
    transaction: TransactionRecord


class BulkRowFailureRecord(BaseModel):
    row: int = Field(..., description="1-based position of the row in the submitted batch.")
    transaction: Any = None
    errors: List[str]


class BulkCreateResponse(BaseModel):
    total: int
    successful: List[BulkRowSuccessRecord] = Field(default_factory=list)
    failed: List[BulkRowFailureRecord] = Field(default_factory=list)
    outcome: str
    aborted: bool = False
    message: str


class BulkCountResponse(BaseModel):
    message: str
    count: int
