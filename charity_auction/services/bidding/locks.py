import asyncio
from contextlib import asynccontextmanager


class AuctionLocks:
    """One asyncio.Lock per auction, serializing bid writers inside a process"""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, auction_id) -> asyncio.Lock:
        key = str(auction_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, auction_id):
        async with self.get(auction_id):
            yield

    def discard(self, auction_id):
        """Forget the lock of an auction that will not see more bids"""
        key = str(auction_id)
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]

    def __len__(self):
        return len(self._locks)
