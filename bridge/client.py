# bridge/client.py
from __future__ import annotations

import logging
from typing import List, Optional

from bridge.actions import ActionExtractor, BridgeAction, BridgeActionExtractor
from bridge.events import BridgeEventDecoder, EventDecoder
from common.errors import BridgeError
from common.settings import Settings
from common.utils import is_tx_hash
from ingestion.fetcher import LogFetcher
from ingestion.finality import FinalityGate
from ingestion.models import MAX_LOG_INDEX_IN_TX, VerifiedLog
from ingestion.provider import EthProvider
from ingestion.rpc import HttpTransport

logger = logging.getLogger(__name__)


class EthClient:
    """
    Entry point of the watcher: finalized single-event lookups and verified
    range scans over one provider.
    """

    def __init__(
        self,
        provider: EthProvider,
        decoder: Optional[EventDecoder] = None,
        extractor: Optional[ActionExtractor] = None,
        expected_chain_id: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.provider = provider
        self.decoder = decoder or BridgeEventDecoder()
        self.extractor = extractor or BridgeActionExtractor()
        self.expected_chain_id = expected_chain_id
        self.finality = FinalityGate(provider)
        self.fetcher = LogFetcher(provider, max_concurrency=max_concurrency)
        self.chain_info: Optional[dict] = None

    @classmethod
    async def connect(cls, settings: Settings) -> "EthClient":
        transport = HttpTransport(
            settings.rpc.url,
            timeout=settings.rpc.timeout,
            max_retries=settings.rpc.max_retries,
            backoff_seconds=settings.rpc.backoff_seconds,
        )
        client = cls(
            EthProvider(transport),
            decoder=BridgeEventDecoder(settings.bridge.contract),
            expected_chain_id=settings.bridge.expected_chain_id,
            max_concurrency=settings.bridge.max_concurrency,
        )
        await client.describe()
        return client

    async def describe(self) -> dict:
        chain_id = await self.provider.chain_id()
        block_number = await self.provider.head_block_number()
        logger.info("EthClient is connected to chain %d, current block number: %d", chain_id, block_number)
        if self.expected_chain_id is not None and chain_id != self.expected_chain_id:
            raise BridgeError.integrity(
                "Provider is connected to an unexpected chain",
                expected=self.expected_chain_id,
                actual=chain_id,
            )
        self.chain_info = {"chain_id": chain_id, "block_number": block_number}
        return self.chain_info

    async def get_last_finalized_block_id(self) -> int:
        return await self.finality.current_finalized_height()

    async def get_events_in_range(self, address: str, start_block: int, end_block: int) -> List[VerifiedLog]:
        return await self.fetcher.fetch_range(address, start_block, end_block)

    async def finalized_action_for(self, tx_hash: str, event_index: int) -> BridgeAction:
        if not is_tx_hash(tx_hash):
            raise ValueError("tx_hash must be a 0x prefixed 32-byte hex string")
        if not isinstance(event_index, int) or not 0 <= event_index <= MAX_LOG_INDEX_IN_TX:
            raise ValueError("event_index must be an integer in 0..65535")
        tx_hash = tx_hash.lower()

        # the hash comes from the caller, so a missing receipt is a lookup miss
        receipt = await self.provider.transaction_receipt(tx_hash)
        if receipt is None:
            raise BridgeError.not_found(tx_hash)
        if receipt.transaction_hash is not None and receipt.transaction_hash != tx_hash:
            raise BridgeError.integrity(
                "Provider returns receipt for another transaction", expected=tx_hash, actual=receipt.transaction_hash
            )
        if receipt.block_number is None:
            raise BridgeError.integrity("Provider returns receipt without block_number", tx_hash=tx_hash)

        finalized = await self.finality.current_finalized_height()
        if receipt.block_number > finalized:
            raise BridgeError.not_finalized(tx_hash, receipt.block_number, finalized)

        if event_index >= len(receipt.logs):
            raise BridgeError.no_event(tx_hash, event_index, f"receipt has {len(receipt.logs)} logs")
        # the index is already relative to the receipt, no re-matching needed
        log = VerifiedLog(
            block_number=receipt.block_number,
            tx_hash=tx_hash,
            log_index_in_tx=event_index,
            log=receipt.logs[event_index],
        )

        event = self.decoder.decode(log)
        if event is None:
            raise BridgeError.no_event(tx_hash, event_index, "log is not a bridge event")

        action = self.extractor.extract(event, tx_hash, event_index)
        if action is None:
            raise BridgeError.not_actionable(tx_hash, event_index, event.name)
        return action
