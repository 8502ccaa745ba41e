# ingestion/receipts.py
"""
ingestion.receipts

Recover a log's index within its transaction.

eth_getLogs only reports the index of a log within its block, which is not a
stable key for downstream idempotency. The receipt lists the transaction's
logs in emission order, so the position of the matching entry in that list is
the index within the transaction. The receipt is cross checked against the
log (block number, topics, data) so a node that serves two inconsistent views
is detected instead of producing a wrong position.
"""
from __future__ import annotations

import logging

from common.errors import BridgeError
from ingestion.models import MAX_LOG_INDEX_IN_TX, RawLog, VerifiedLog
from ingestion.provider import EthProvider

logger = logging.getLogger(__name__)


def _fail(message: str, **context) -> BridgeError:
    err = BridgeError.integrity(message, **context)
    logger.error("provider integrity failure: %s", err)
    return err


class ReceiptMatcher:
    def __init__(self, provider: EthProvider):
        self.provider = provider

    async def resolve(self, log: RawLog) -> VerifiedLog:
        if log.block_number is None:
            raise _fail("Provider returns log without block_number", log=log)
        if log.transaction_hash is None:
            raise _fail("Provider returns log without transaction_hash", log=log)
        # this is the log index in the block, not the transaction
        if log.log_index is None:
            raise _fail("Provider returns log without log_index", log=log)
        tx_hash = log.transaction_hash

        receipt = await self.provider.transaction_receipt(tx_hash)
        # the log is proof the transaction exists, so a missing receipt is the provider's fault
        if receipt is None:
            raise _fail("Provider cannot find transaction for log", tx_hash=tx_hash, log=log)
        if receipt.transaction_hash is not None and receipt.transaction_hash != tx_hash:
            raise _fail("Provider returns receipt for another transaction", expected=tx_hash, actual=receipt.transaction_hash)
        if receipt.block_number is None:
            raise _fail("Provider returns receipt without block_number", tx_hash=tx_hash)
        if receipt.block_number != log.block_number:
            raise _fail(
                "Provider returns receipt with different block number from log",
                tx_hash=tx_hash,
                expected=log.block_number,
                actual=receipt.block_number,
            )

        position = None
        for idx, receipt_log in enumerate(receipt.logs):
            if receipt_log.log_index != log.log_index:
                continue
            if position is not None:
                raise _fail(
                    "Provider returns receipt with duplicate log_index",
                    tx_hash=tx_hash,
                    log_index=log.log_index,
                    positions=(position, idx),
                )
            if not receipt_log.same_content(log):
                raise _fail(
                    "Provider returns receipt with different log content at the same log_index",
                    tx_hash=tx_hash,
                    log_index=log.log_index,
                    expected=log.to_rpc(),
                    actual=receipt_log.to_rpc(),
                )
            position = idx

        if position is None:
            raise _fail(
                "Couldn't find matching log in transaction receipt",
                tx_hash=tx_hash,
                log_index=log.log_index,
                receipt_log_indices=[lg.log_index for lg in receipt.logs],
            )
        if position > MAX_LOG_INDEX_IN_TX:
            raise _fail("log index in transaction does not fit in 16 bits", tx_hash=tx_hash, position=position)

        return VerifiedLog(
            block_number=log.block_number,
            tx_hash=tx_hash,
            log_index_in_tx=position,
            log=log,
        )
