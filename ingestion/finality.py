# ingestion/finality.py
from __future__ import annotations

from common.errors import BridgeError
from ingestion.provider import EthProvider

FINALIZED_TAG = "finalized"


class FinalityGate:
    """
    Answers finality questions from a fresh eth_getBlockByNumber("finalized")
    on every call. Nothing is cached: a stale height could approve a block
    that is not final yet.
    """

    def __init__(self, provider: EthProvider):
        self.provider = provider

    async def current_finalized_height(self) -> int:
        block = await self.provider.block_by_tag(FINALIZED_TAG)
        # some nodes do not serve the tag for a while after startup
        if block is None:
            raise BridgeError.transient("Provider fails to return last finalized block", tag=FINALIZED_TAG)
        if block.number is None:
            raise BridgeError.transient("Provider returns finalized block without number", tag=FINALIZED_TAG)
        return block.number

    async def is_finalized(self, height: int) -> bool:
        return height <= await self.current_finalized_height()
