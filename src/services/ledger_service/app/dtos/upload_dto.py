# src/services/ledger_service/app/dtos/upload_dto.py
from typing import Any, Literal

from pydantic import BaseModel, Field

UploadFileFormat = Literal["csv", "xlsx"]


class UploadRowError(BaseModel):
    row_number: int = Field(..., description="1-based row number from the uploaded file; the header is row 1.")
    message: str = Field(..., description="Validation error message for the row.")


class UploadPreviewResponse(BaseModel):
    file_format: UploadFileFormat
    total_rows: int
    valid_rows: int
    invalid_rows: int
    sample_rows: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Calculated and validated sample rows for review before commit.",
    )
    errors: list[UploadRowError] = Field(
        default_factory=list,
        description="Validation errors by row for correction before commit.",
    )


class UploadCommitResponse(BaseModel):
    file_format: UploadFileFormat
    total_rows: int
    created_rows: int
    failed_rows: int
    outcome: str
    aborted: bool = False
    transaction_ids: list[int] = Field(default_factory=list)
    errors: list[UploadRowError] = Field(default_factory=list)
    message: str
