"""Payout transaction repository with deduplication queries."""

from typing import Iterable, Set

from sqlalchemy import select

from payout_sync.db.models.transaction import PayoutTransaction
from payout_sync.db.repository import BaseRepository


class TransactionRepository(BaseRepository[PayoutTransaction]):
    """Repository for PayoutTransaction."""

    async def get_existing_external_ids(self, external_ids: Iterable[int]) -> Set[int]:
        """
        Return which of ``external_ids`` are already stored, for any cabinet.

        Args:
            external_ids: Platform transaction ids to look up

        Returns:
            The subset that exists
        """
        ids = list(external_ids)
        if not ids:
            return set()
        result = await self.session.execute(
            select(self.model.external_id).where(self.model.external_id.in_(ids))
        )
        return set(result.scalars().all())

    async def get_external_ids_for_cabinet(self, cabinet_id: int) -> Set[int]:
        """
        Return every stored external id of one cabinet.

        Args:
            cabinet_id: Cabinet ID

        Returns:
            Set of platform transaction ids
        """
        result = await self.session.execute(
            select(self.model.external_id).where(self.model.cabinet_id == cabinet_id)
        )
        return set(result.scalars().all())
