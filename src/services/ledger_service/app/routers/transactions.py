# src/services/ledger_service/app/routers/transactions.py
from typing import Dict

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ledger_common.exceptions import LedgerError, ValidationFailedError
from ledger_common.transaction_domain import Principal

from ..dependencies import (
    get_bulk_ledger_service,
    get_current_principal,
    get_ledger_service,
    pagination_params,
    transaction_filter_params,
)
from ..dtos.bulk_dto import (
    BulkCountResponse,
    BulkCreateResponse,
    BulkRequest,
    BulkRowFailureRecord,
    BulkRowSuccessRecord,
)
from ..dtos.transaction_dto import (
    CashBalanceResponse,
    DuplicateAdvisory,
    PaginatedTransactionResponse,
    Pagination,
    TransactionCreateRequest,
    TransactionCreateResponse,
    TransactionDeleteResponse,
    TransactionRecord,
    TransactionUpdateRequest,
)
from ..error_mapping import to_http_exception
from ..services.bulk_ledger_service import BulkCreateResult, BulkLedgerService, BulkOutcome
from ..services.ledger_service import LedgerService
from ..services.permission_filters import TransactionFilters

router = APIRouter(prefix="/transactions", tags=["Transactions"])

ERROR_RESPONSES = {
    status.HTTP_401_UNAUTHORIZED: {"description": "No verified principal accompanies the request."},
    status.HTTP_403_FORBIDDEN: {"description": "Principal is out of scope for the target row."},
}


def bulk_create_status(result: BulkCreateResult) -> int:
    if result.aborted:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if result.outcome == BulkOutcome.SUCCESS:
        return status.HTTP_201_CREATED
    if result.outcome == BulkOutcome.PARTIAL_SUCCESS:
        return status.HTTP_207_MULTI_STATUS
    return status.HTTP_400_BAD_REQUEST


def bulk_create_response(result: BulkCreateResult) -> BulkCreateResponse:
    return BulkCreateResponse(
        total=result.total,
        successful=[
            BulkRowSuccessRecord(row=success.row, transaction=TransactionRecord.model_validate(success.transaction))
            for success in result.successful
        ],
        failed=[
            BulkRowFailureRecord(row=failure.row, transaction=failure.transaction, errors=failure.errors)
            for failure in result.failed
        ],
        outcome=result.outcome.value,
        aborted=result.aborted,
        message=result.message,
    )


@router.get(
    "",
    response_model=PaginatedTransactionResponse,
    responses=ERROR_RESPONSES,
    summary="List Ledger Transactions",
    description=(
        "Returns the ledger rows visible to the caller, newest first, narrowed by the "
        "optional filters. Filters outside the caller's scope yield an empty page."
    ),
)
async def list_transactions(
    filters: TransactionFilters = Depends(transaction_filter_params),
    pagination: Dict[str, int] = Depends(pagination_params),
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        page = await service.list_transactions(principal, filters, **pagination)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return PaginatedTransactionResponse(
        transactions=[TransactionRecord.model_validate(row) for row in page.transactions],
        pagination=Pagination(
            page=page.page, limit=page.limit, total=page.total, total_pages=page.total_pages
        ),
    )


@router.get(
    "/cash-balance",
    response_model=CashBalanceResponse,
    responses=ERROR_RESPONSES,
    summary="Cash Balance of Visible Transactions",
)
async def get_cash_balance(
    filters: TransactionFilters = Depends(transaction_filter_params),
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        balance = await service.cash_balance(principal, filters)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return CashBalanceResponse(balance=balance)


@router.get(
    "/{transaction_id}",
    response_model=TransactionRecord,
    responses={**ERROR_RESPONSES, status.HTTP_404_NOT_FOUND: {"description": "Transaction not found."}},
    summary="Get a Ledger Transaction",
)
async def get_transaction(
    transaction_id: int = Path(..., description="Ledger row id."),
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        transaction = await service.get_transaction(principal, transaction_id)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return TransactionRecord.model_validate(transaction)


@router.post(
    "",
    response_model=TransactionCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **ERROR_RESPONSES,
        status.HTTP_400_BAD_REQUEST: {"description": "Validation failed; body lists every violation."},
        status.HTTP_409_CONFLICT: {"description": "Row conflicts with existing ledger data."},
    },
    summary="Create a Ledger Transaction",
    description=(
        "Calculates derived fields, validates the row and records it as DRAFT unless an "
        "entry status is supplied. The duplicate check is advisory and never blocks the write."
    ),
)
async def create_transaction(
    body: TransactionCreateRequest,
    check_duplicates: bool = Query(True, description="Run the natural-key duplicate check."),
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        result = await service.create_transaction(principal, body, check_duplicates=check_duplicates)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return TransactionCreateResponse(
        transaction=TransactionRecord.model_validate(result.transaction),
        duplicate=DuplicateAdvisory.model_validate(result.duplicate) if result.duplicate else None,
    )


@router.patch(
    "/{transaction_id}",
    response_model=TransactionRecord,
    responses={
        **ERROR_RESPONSES,
        status.HTTP_400_BAD_REQUEST: {"description": "The merged row violates a ledger invariant."},
        status.HTTP_404_NOT_FOUND: {"description": "Transaction not found."},
    },
    summary="Update a Ledger Transaction",
)
async def update_transaction(
    body: TransactionUpdateRequest,
    transaction_id: int = Path(..., description="Ledger row id."),
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
):
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise to_http_exception(ValidationFailedError(["No fields to update"]))
    try:
        transaction = await service.update_transaction(principal, transaction_id, changes)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return TransactionRecord.model_validate(transaction)


@router.delete(
    "/{transaction_id}",
    response_model=TransactionDeleteResponse,
    responses={
        **ERROR_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"description": "Transaction not found."},
        status.HTTP_409_CONFLICT: {"description": "Posted transactions cannot be deleted."},
    },
    summary="Delete a Draft Ledger Transaction",
)
async def delete_transaction(
    transaction_id: int = Path(..., description="Ledger row id."),
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        await service.delete_transaction(principal, transaction_id)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return TransactionDeleteResponse(message="Transaction deleted", id=transaction_id)


@router.post(
    "/bulk",
    responses={
        status.HTTP_200_OK: {"model": BulkCountResponse, "description": "Count of affected rows."},
        status.HTTP_201_CREATED: {"model": BulkCreateResponse, "description": "Every row was created."},
        status.HTTP_207_MULTI_STATUS: {"model": BulkCreateResponse, "description": "Some rows failed."},
        status.HTTP_400_BAD_REQUEST: {"description": "No row could be attempted, or the request is invalid."},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": BulkCreateResponse, "description": "The batch aborted."},
    },
    summary="Bulk Ledger Operations",
    description=(
        "Runs one of 'create', 'post', 'delete_drafts' or 'update_status'. Bulk create "
        "returns a per-row report; the other operations return the number of affected rows."
    ),
)
async def bulk_operation(
    body: BulkRequest,
    principal: Principal = Depends(get_current_principal),
    service: BulkLedgerService = Depends(get_bulk_ledger_service),
):
    try:
        if body.operation == "create":
            result = await service.bulk_create(principal, body.transactions or [])
            return JSONResponse(
                status_code=bulk_create_status(result),
                content=jsonable_encoder(bulk_create_response(result)),
            )
        if body.operation == "post":
            count = await service.bulk_post(
                principal, body.filters.account_id, body.filters.transaction_ids
            )
            return BulkCountResponse(message=f"Successfully posted {count} transactions", count=count)
        if body.operation == "delete_drafts":
            count = await service.bulk_delete_drafts(
                principal, body.filters.account_id, body.filters.transaction_ids
            )
            return BulkCountResponse(message=f"Successfully deleted {count} draft transactions", count=count)
        count = await service.bulk_update_status(principal, body.transaction_ids, body.new_status)
        return BulkCountResponse(
            message=f"Successfully updated {count} transactions to {body.new_status}", count=count
        )
    except LedgerError as exc:
        raise to_http_exception(exc)
