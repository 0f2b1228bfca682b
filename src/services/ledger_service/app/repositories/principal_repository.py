# src/services/ledger_service/app/repositories/principal_repository.py
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_common.database_models import User
from ledger_common.transaction_domain import Principal
from ledger_common.utils import async_timed

logger = logging.getLogger(__name__)


class PrincipalRepository:
    """Resolves a gateway-verified subject to the ledger's view of the caller."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @async_timed(repository="PrincipalRepository", method="get_by_auth_subject")
    async def get_by_auth_subject(self, auth_subject: str) -> Optional[Principal]:
        stmt = select(User).where(User.auth_subject == auth_subject)
        # Own transaction so request handlers can still open theirs afterwards.
        async with self.db.begin():
            user = (await self.db.execute(stmt)).scalars().first()
            if user is None:
                logger.warning("No user matches the authenticated subject.")
                return None
            return Principal.model_validate(user)
