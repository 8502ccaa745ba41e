# ingestion/provider.py
from __future__ import annotations

from typing import List, Optional

from common.errors import BridgeError
from common.utils import hex_to_int
from ingestion.models import Block, RawLog, TransactionReceipt
from ingestion.rpc import Transport


class EthProvider:
    """
    Typed eth_* calls over any Transport.

    Absent results (null receipt, null block) come back as None; anything the
    node returns in the wrong shape raises a provider integrity error.
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def _quantity(self, method: str) -> int:
        result = await self.transport.request(method, [])
        try:
            return hex_to_int(result)
        except ValueError as e:
            raise BridgeError.integrity(f"{method} returned a malformed quantity", value=result) from e

    async def chain_id(self) -> int:
        return await self._quantity("eth_chainId")

    async def head_block_number(self) -> int:
        return await self._quantity("eth_blockNumber")

    async def transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        result = await self.transport.request("eth_getTransactionReceipt", [tx_hash])
        if result is None:
            return None
        return TransactionReceipt.from_rpc(result)

    async def logs(self, address: str, from_block: int, to_block: int) -> List[RawLog]:
        params = [{"address": address, "fromBlock": hex(from_block), "toBlock": hex(to_block)}]
        result = await self.transport.request("eth_getLogs", params)
        if not isinstance(result, list):
            raise BridgeError.integrity("eth_getLogs did not return a list", value=result)
        return [RawLog.from_rpc(lg) for lg in result]

    async def block_by_tag(self, tag: str) -> Optional[Block]:
        result = await self.transport.request("eth_getBlockByNumber", [tag, False])
        if result is None:
            return None
        return Block.from_rpc(result)
