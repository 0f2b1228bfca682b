from dataclasses import dataclass
from typing import Optional

MASTER_ACCOUNT_PREFIX = "master_"
CLIENT_ACCOUNT_PREFIX = "client_"

_PREFIX_TO_FIELD = {
    MASTER_ACCOUNT_PREFIX: "master_account_id",
    CLIENT_ACCOUNT_PREFIX: "client_account_id",
}


@dataclass(frozen=True)
class AccountReference:
    """A type-tagged account id split into the exclusive column it targets."""

    field: str
    account_id: str

    @property
    def tagged(self) -> str:
        prefix = MASTER_ACCOUNT_PREFIX if self.field == "master_account_id" else CLIENT_ACCOUNT_PREFIX
        return f"{prefix}{self.account_id}"


def parse_account_reference(tagged_id: Optional[str]) -> Optional[AccountReference]:
    """
    Decomposes 'master_<id>' / 'client_<id>'. Anything else, including an
    empty id after the prefix, is not an account reference and yields None.
    """
    if not tagged_id:
        return None
    for prefix, field in _PREFIX_TO_FIELD.items():
        if tagged_id.startswith(prefix):
            account_id = tagged_id[len(prefix):]
            return AccountReference(field=field, account_id=account_id) if account_id else None
    return None


def account_reference_of(
    master_account_id: Optional[str], client_account_id: Optional[str]
) -> Optional[AccountReference]:
    """The reference a stored or drafted row points at; master wins if both are set."""
    if master_account_id:
        return AccountReference(field="master_account_id", account_id=master_account_id)
    if client_account_id:
        return AccountReference(field="client_account_id", account_id=client_account_id)
    return None
