# src/services/ledger_service/app/services/upload_service.py
from __future__ import annotations

import csv
import logging
import zipfile
from dataclasses import dataclass
from io import BytesIO, StringIO
from typing import Any, Literal, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ledger_common.config import LEDGER_UPLOAD_SAMPLE_SIZE
from ledger_common.exceptions import ValidationFailedError
from ledger_common.transaction_domain import (
    EntryStatus,
    Principal,
    TransactionDraft,
    parse_account_reference,
)

from ..dtos.upload_dto import UploadCommitResponse, UploadPreviewResponse, UploadRowError
from .bulk_ledger_service import BulkLedgerService
from .duplicate_detector import CASH_SECURITY

logger = logging.getLogger(__name__)

# Header spellings accepted besides the draft's own field names.
HEADER_ALIASES = {
    "date": "transaction_date",
    "type": "transaction_type",
    "security": "security_id",
    "status": "entry_status",
}
UPPERCASE_FIELDS = ("transaction_type", "entry_status")


def _normalized_key(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


def _field_alias_index() -> dict[str, str]:
    index = {_normalized_key(name): name for name in TransactionDraft.model_fields}
    index.update({_normalized_key(alias): name for alias, name in HEADER_ALIASES.items()})
    return index


def _normalize_row(row: dict[str, Any], alias_index: dict[str, str]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for raw_key, raw_value in row.items():
        if raw_key is None:
            continue
        canonical_key = alias_index.get(_normalized_key(str(raw_key)))
        if canonical_key is None:
            continue
        value = raw_value
        if isinstance(value, str):
            stripped = value.strip()
            value = None if stripped == "" else stripped
            if value is not None and canonical_key in UPPERCASE_FIELDS:
                value = value.upper()
        normalized[canonical_key] = value
    if normalized.get("security_id") == CASH_SECURITY:
        normalized["security_id"] = None
    return normalized


def _is_blank(values) -> bool:
    return all(value is None or str(value).strip() == "" for value in values)


def _parse_csv(content: bytes) -> list[tuple[int, dict[str, Any]]]:
    """Data rows keyed by header, each with the file line it starts on."""
    reader = csv.reader(StringIO(content.decode("utf-8-sig")))
    headers = next(reader, None)
    if headers is None:
        return []

    records: list[tuple[int, dict[str, Any]]] = []
    line_number = reader.line_num + 1
    for cells in reader:
        if not _is_blank(cells):
            records.append((line_number, dict(zip(headers, cells))))
        line_number = reader.line_num + 1
    return records


def _parse_xlsx(content: bytes) -> list[tuple[int, dict[str, Any]]]:
    workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    worksheet = workbook.active
    rows = list(worksheet.iter_rows(values_only=True))
    if not rows:
        return []

    headers = [str(cell).strip() if cell is not None else "" for cell in rows[0]]
    records: list[tuple[int, dict[str, Any]]] = []
    for row_number, cells in enumerate(rows[1:], start=2):
        if cells is None:
            continue
        row_dict = {
            headers[index]: cells[index] if index < len(cells) else None
            for index in range(len(headers))
            if headers[index]
        }
        if not _is_blank(row_dict.values()):
            records.append((row_number, row_dict))
    return records


def _detect_format(filename: str) -> Literal["csv", "xlsx"]:
    lowered = (filename or "").lower()
    if lowered.endswith(".csv"):
        return "csv"
    if lowered.endswith(".xlsx"):
        return "xlsx"
    raise ValidationFailedError(["Unsupported file format. Use .csv or .xlsx."])


@dataclass
class UploadDefaults:
    """Values applied to rows that leave them blank."""

    account_id: Optional[str] = None
    client_profile_id: Optional[str] = None
    entry_status: Optional[EntryStatus] = None


@dataclass
class _ParsedUpload:
    file_format: Literal["csv", "xlsx"]
    rows: list[dict[str, Any]]
    # File row of each entry in `rows`; the header is row 1.
    row_numbers: list[int]


class LedgerUploadService:
    """CSV/XLSX import of ledger rows, previewed first and committed through bulk create."""

    def __init__(self, bulk_service: BulkLedgerService):
        self._bulk_service = bulk_service

    def _parse_rows(
        self, principal: Principal, filename: str, content: bytes, defaults: UploadDefaults
    ) -> _ParsedUpload:
        file_format = _detect_format(filename)
        try:
            records = _parse_csv(content) if file_format == "csv" else _parse_xlsx(content)
        except (UnicodeDecodeError, csv.Error, zipfile.BadZipFile, InvalidFileException, ValueError) as exc:
            raise ValidationFailedError([f"Upload file could not be read: {exc}"]) from exc

        if not records:
            raise ValidationFailedError(["Upload file contains no data rows."])

        alias_index = _field_alias_index()
        account = parse_account_reference(defaults.account_id)
        if defaults.account_id and account is None:
            raise ValidationFailedError(["Default account id must start with 'master_' or 'client_'"])
        client_profile_id = defaults.client_profile_id or principal.client_profile_id

        rows = []
        for _, raw in records:
            row = _normalize_row(raw, alias_index)
            if account and not row.get("master_account_id") and not row.get("client_account_id"):
                row[account.field] = account.account_id
            if client_profile_id and not row.get("client_profile_id"):
                row["client_profile_id"] = client_profile_id
            if defaults.entry_status and not row.get("entry_status"):
                row["entry_status"] = defaults.entry_status.value
            rows.append(row)
        return _ParsedUpload(
            file_format=file_format,
            rows=rows,
            row_numbers=[row_number for row_number, _ in records],
        )

    def preview_upload(
        self,
        principal: Principal,
        filename: str,
        content: bytes,
        defaults: Optional[UploadDefaults] = None,
        sample_size: int = LEDGER_UPLOAD_SAMPLE_SIZE,
    ) -> UploadPreviewResponse:
        parsed = self._parse_rows(principal, filename, content, defaults or UploadDefaults())

        sample_rows: list[dict[str, Any]] = []
        errors: list[UploadRowError] = []
        valid_count = 0
        for row_number, row in zip(parsed.row_numbers, parsed.rows):
            calculated, issues = self._bulk_service.prepare_row(principal, row)
            if issues:
                errors.append(UploadRowError(row_number=row_number, message="; ".join(issues)))
                continue
            valid_count += 1
            if len(sample_rows) < sample_size:
                sample_rows.append(calculated.model_dump(mode="json", exclude_none=True))

        return UploadPreviewResponse(
            file_format=parsed.file_format,
            total_rows=len(parsed.rows),
            valid_rows=valid_count,
            invalid_rows=len(errors),
            sample_rows=sample_rows,
            errors=errors[:sample_size],
        )

    async def commit_upload(
        self,
        principal: Principal,
        filename: str,
        content: bytes,
        defaults: Optional[UploadDefaults] = None,
    ) -> UploadCommitResponse:
        parsed = self._parse_rows(principal, filename, content, defaults or UploadDefaults())

        result = await self._bulk_service.bulk_create(principal, parsed.rows)
        logger.info(
            "Upload committed.",
            extra={"file_format": parsed.file_format, "total": result.total, "outcome": result.outcome.value},
        )
        return UploadCommitResponse(
            file_format=parsed.file_format,
            total_rows=result.total,
            created_rows=len(result.successful),
            failed_rows=len(result.failed),
            outcome=result.outcome.value,
            aborted=result.aborted,
            transaction_ids=[success.transaction.id for success in result.successful],
            errors=[
                UploadRowError(row_number=parsed.row_numbers[failure.row - 1], message="; ".join(failure.errors))
                for failure in result.failed
            ],
            message=result.message,
        )
