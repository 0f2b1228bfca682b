# src/services/ledger_service/app/routers/uploads.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ledger_common.config import LEDGER_UPLOAD_SAMPLE_SIZE
from ledger_common.exceptions import LedgerError
from ledger_common.transaction_domain import EntryStatus, Principal

from ..dependencies import get_current_principal, get_upload_service
from ..dtos.upload_dto import UploadCommitResponse, UploadPreviewResponse
from ..error_mapping import to_http_exception
from ..services.bulk_ledger_service import BulkOutcome
from ..services.upload_service import LedgerUploadService, UploadDefaults

router = APIRouter(prefix="/transactions/uploads", tags=["Bulk Upload"])


def commit_status(response: UploadCommitResponse) -> int:
    if response.aborted:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if response.outcome == BulkOutcome.SUCCESS.value:
        return status.HTTP_201_CREATED
    if response.outcome == BulkOutcome.PARTIAL_SUCCESS.value:
        return status.HTTP_207_MULTI_STATUS
    return status.HTTP_400_BAD_REQUEST


@router.post(
    "/preview",
    response_model=UploadPreviewResponse,
    status_code=status.HTTP_200_OK,
    summary="Preview a CSV/XLSX transaction upload",
    description=(
        "Parses the file, applies defaults, calculates derived fields and validates every row "
        "without writing anything. Header names are matched case- and punctuation-insensitively."
    ),
)
async def preview_upload(
    file: UploadFile = File(..., description="Upload file (.csv or .xlsx)."),
    default_account_id: Optional[str] = Form(None, description="Type-tagged account for rows without one."),
    default_client_profile_id: Optional[str] = Form(None),
    sample_size: int = Form(LEDGER_UPLOAD_SAMPLE_SIZE, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    upload_service: LedgerUploadService = Depends(get_upload_service),
):
    content = await file.read()
    defaults = UploadDefaults(
        account_id=default_account_id, client_profile_id=default_client_profile_id
    )
    try:
        return upload_service.preview_upload(
            principal, file.filename or "", content, defaults, sample_size=sample_size
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post(
    "/commit",
    responses={
        status.HTTP_201_CREATED: {"model": UploadCommitResponse},
        status.HTTP_207_MULTI_STATUS: {"model": UploadCommitResponse},
        status.HTTP_400_BAD_REQUEST: {"description": "Empty, unreadable or entirely invalid file."},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": UploadCommitResponse},
    },
    summary="Commit a CSV/XLSX transaction upload",
    description="Creates the valid rows through bulk create and reports failures by file row number.",
)
async def commit_upload(
    file: UploadFile = File(..., description="Upload file (.csv or .xlsx)."),
    default_account_id: Optional[str] = Form(None),
    default_client_profile_id: Optional[str] = Form(None),
    entry_status: Optional[EntryStatus] = Form(None, description="Status for rows that do not state one."),
    principal: Principal = Depends(get_current_principal),
    upload_service: LedgerUploadService = Depends(get_upload_service),
):
    content = await file.read()
    defaults = UploadDefaults(
        account_id=default_account_id,
        client_profile_id=default_client_profile_id,
        entry_status=entry_status,
    )
    try:
        response = await upload_service.commit_upload(principal, file.filename or "", content, defaults)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return JSONResponse(status_code=commit_status(response), content=jsonable_encoder(response))
