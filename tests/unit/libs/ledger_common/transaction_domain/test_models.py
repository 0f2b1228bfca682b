# tests/unit/libs/ledger_common/transaction_domain/test_models.py
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from ledger_common.transaction_domain import (
    ClientProfileRef,
    Principal,
    PrincipalLevel,
    TransactionDraft,
    TransactionType,
)


def test_naive_transaction_date_is_read_as_utc():
    draft = TransactionDraft(transaction_date=datetime(2024, 1, 15, 10, 30))
    assert draft.transaction_date.tzinfo == timezone.utc


def test_blank_identifiers_are_missing():
    draft = TransactionDraft.model_validate(
        {"security_id": " ", "master_account_id": "", "description": "  "}
    )
    assert draft.security_id is None
    assert draft.master_account_id is None
    assert draft.description is None


def test_unknown_transaction_type_is_rejected():
    with pytest.raises(ValidationError):
        TransactionDraft.model_validate({"transaction_type": "SWAP"})


def test_unknown_keys_are_ignored():
    draft = TransactionDraft.model_validate({"transaction_type": "FEE", "accountInfo": {"id": "x"}})
    assert draft.transaction_type == TransactionType.FEE


def test_principal_profile_helpers():
    admin = Principal(id="U1", level=PrincipalLevel.L5_ADMIN)
    client = Principal(
        id="U2", level="L2_CLIENT", client_profile=ClientProfileRef(id="CP-1")
    )

    assert admin.is_admin and admin.client_profile_id is None
    assert not client.is_admin and client.client_profile_id == "CP-1"
