# tests/unit/services/ledger_service/routers/test_ledger_uploads_router.py
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from ledger_common.exceptions import ValidationFailedError
from ledger_common.transaction_domain import EntryStatus

from src.services.ledger_service.app.dtos.upload_dto import (
    UploadCommitResponse,
    UploadPreviewResponse,
)
from src.services.ledger_service.app.routers.uploads import commit_upload, preview_upload

pytestmark = pytest.mark.asyncio


def _upload(filename: str = "ledger.csv", content: bytes = b"Date,Type\n") -> MagicMock:
    upload = MagicMock()
    upload.filename = filename
    upload.read = AsyncMock(return_value=content)
    return upload


async def test_preview_passes_defaults_to_service(client_principal):
    service = MagicMock()
    service.preview_upload.return_value = UploadPreviewResponse(
        file_format="csv", total_rows=1, valid_rows=1, invalid_rows=0
    )

    response = await preview_upload(
        file=_upload(),
        default_account_id="master_MA-1",
        default_client_profile_id=None,
        sample_size=5,
        principal=client_principal,
        upload_service=service,
    )

    assert response.valid_rows == 1
    args, kwargs = service.preview_upload.call_args
    assert args[1] == "ledger.csv"
    assert args[3].account_id == "master_MA-1"
    assert kwargs == {"sample_size": 5}


async def test_preview_unsupported_file_maps_to_400(admin):
    service = MagicMock()
    service.preview_upload.side_effect = ValidationFailedError(["Unsupported file format. Use .csv or .xlsx."])

    with pytest.raises(HTTPException) as exc_info:
        await preview_upload(
            file=_upload("ledger.txt"),
            default_account_id=None,
            default_client_profile_id=None,
            sample_size=20,
            principal=admin,
            upload_service=service,
        )

    assert exc_info.value.status_code == 400


@pytest.mark.parametrize(
    "outcome, aborted, expected_status",
    [("SUCCESS", False, 201), ("PARTIAL_SUCCESS", False, 207), ("FAILURE", False, 400), ("FAILURE", True, 500)],
)
async def test_commit_status_follows_outcome(admin, outcome, aborted, expected_status):
    service = MagicMock()
    service.commit_upload = AsyncMock(
        return_value=UploadCommitResponse(
            file_format="csv",
            total_rows=2,
            created_rows=2 if outcome == "SUCCESS" else 1,
            failed_rows=0 if outcome == "SUCCESS" else 1,
            outcome=outcome,
            aborted=aborted,
            message="done",
        )
    )

    response = await commit_upload(
        file=_upload(),
        default_account_id=None,
        default_client_profile_id=None,
        entry_status=EntryStatus.POSTED,
        principal=admin,
        upload_service=service,
    )

    assert response.status_code == expected_status
    assert json.loads(response.body)["outcome"] == outcome
    defaults = service.commit_upload.call_args.args[3]
    assert defaults.entry_status == EntryStatus.POSTED
