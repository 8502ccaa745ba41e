# ingestion/fetcher.py
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from common.utils import is_hex_address
from ingestion.models import RawLog, VerifiedLog
from ingestion.provider import EthProvider
from ingestion.receipts import ReceiptMatcher

logger = logging.getLogger(__name__)


def _retrieve_sibling_error(task: asyncio.Task) -> None:
    # gather only raises the first failure; later ones are logged here
    if task.cancelled():
        return
    err = task.exception()
    if err is not None:
        logger.debug("sibling resolution failed: %s", err)


class LogFetcher:
    """
    Fetch logs emitted by one contract in a block range and resolve each one
    against its receipt.

    Resolutions run concurrently, one task per log, and fail together: the
    first failure is raised and the other tasks, whose requests are already in
    flight, are left to finish. Output order is not the input order; sort by
    VerifiedLog.sort_key when order matters.
    """

    def __init__(self, provider: EthProvider, max_concurrency: Optional[int] = None):
        self.provider = provider
        self.matcher = ReceiptMatcher(provider)
        self.max_concurrency = max_concurrency

    # TODO: paginate when the provider rejects a range as too large
    async def fetch_range(self, address: str, start_block: int, end_block: int) -> List[VerifiedLog]:
        if not is_hex_address(address):
            raise ValueError("address must be a 0x prefixed 20-byte hex string")
        if not isinstance(start_block, int) or not isinstance(end_block, int):
            raise ValueError("start_block and end_block must be integers")
        if start_block < 0 or end_block < start_block:
            raise ValueError("invalid block range")

        try:
            logs = await self.provider.logs(address.lower(), start_block, end_block)
        except Exception as e:
            logger.error("fetch_range failed. address=%s blocks=%d..%d error=%s", address, start_block, end_block, e)
            raise
        if not logs:
            return []

        sem = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def handle_one(log: RawLog) -> VerifiedLog:
            if sem is None:
                return await self.matcher.resolve(log)
            async with sem:
                return await self.matcher.resolve(log)

        tasks = [asyncio.create_task(handle_one(lg)) for lg in logs]
        for t in tasks:
            t.add_done_callback(_retrieve_sibling_error)
        try:
            results = await asyncio.gather(*tasks)
        except Exception as e:
            logger.error(
                "resolving logs failed. address=%s blocks=%d..%d logs=%d error=%s",
                address, start_block, end_block, len(logs), e,
            )
            raise
        logger.debug("fetched %d logs for %s in blocks %d..%d", len(results), address, start_block, end_block)
        return list(results)
