"""Cabinet repository."""

from typing import List

from payout_sync.db.models.cabinet import Cabinet
from payout_sync.db.repository import BaseRepository


class CabinetRepository(BaseRepository[Cabinet]):
    """Read access to platform cabinets."""

    async def get_all_for_sync(self) -> List[Cabinet]:
        """Get every cabinet in a stable order (by ID)."""
        return await self.get_all()
