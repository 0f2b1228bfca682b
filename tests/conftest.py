# tests/conftest.py
import os
import sys
from datetime import datetime, timezone

import pytest

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
for path in (project_root, os.path.join(project_root, 'src', 'libs', 'ledger-common')):
    if path not in sys.path:
        sys.path.insert(0, path)

from ledger_common.transaction_domain import ClientProfileRef, Principal, PrincipalLevel  # noqa: E402


@pytest.fixture
def admin() -> Principal:
    return Principal(id="U-ADMIN", level=PrincipalLevel.L5_ADMIN)


@pytest.fixture
def client_principal() -> Principal:
    return Principal(
        id="U-CLIENT",
        level=PrincipalLevel.L2_CLIENT,
        client_profile=ClientProfileRef(id="CP-1", level="L2_CLIENT", organization_id="ORG-1"),
    )


@pytest.fixture
def subclient_principal() -> Principal:
    return Principal(
        id="U-SUB",
        level=PrincipalLevel.L3_SUBCLIENT,
        client_profile=ClientProfileRef(
            id="CP-2", level="L3_SUBCLIENT", organization_id="ORG-1", parent_client_id="CP-1"
        ),
    )


@pytest.fixture
def agent_principal() -> Principal:
    return Principal(
        id="U-AGENT",
        level=PrincipalLevel.L4_AGENT,
        client_profile=ClientProfileRef(id="CP-AGENT", level="L4_AGENT", organization_id="ORG-1"),
    )


@pytest.fixture
def buy_row() -> dict:
    """A valid BUY draft payload booked against client profile CP-1."""
    return {
        "transaction_date": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        "transaction_type": "BUY",
        "security_id": "SEC-AAPL",
        "quantity": "100",
        "price": "150.50",
        "master_account_id": "MA-1",
        "client_profile_id": "CP-1",
    }
