# ingestion/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from common.errors import BridgeError
from common.utils import hex_to_bytes, opt_hex_to_int

MAX_LOG_INDEX_IN_TX = 0xFFFF


def _norm_hash(v: Any, what: str) -> Optional[str]:
    if v is None:
        return None
    if not isinstance(v, str) or not v.startswith("0x"):
        raise BridgeError.integrity(f"malformed {what}", value=v)
    return v.lower()


@dataclass(frozen=True)
class RawLog:
    """
    A log as the provider reported it. Positional fields are optional because
    provider output is untrusted; consumers must check them.
    """
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None  # index within the block, not the transaction
    address: Optional[str] = None
    topics: Tuple[bytes, ...] = ()
    data: bytes = b""

    @classmethod
    def from_rpc(cls, obj: Any) -> "RawLog":
        if not isinstance(obj, dict):
            raise BridgeError.integrity("log is not a JSON object", value=obj)
        topics = obj.get("topics") or []
        if not isinstance(topics, list):
            raise BridgeError.integrity("log topics is not a list", value=topics)
        try:
            return cls(
                block_number=opt_hex_to_int(obj.get("blockNumber")),
                transaction_hash=_norm_hash(obj.get("transactionHash"), "transactionHash"),
                log_index=opt_hex_to_int(obj.get("logIndex")),
                address=_norm_hash(obj.get("address"), "address"),
                topics=tuple(hex_to_bytes(t) for t in topics),
                data=hex_to_bytes(obj.get("data") or "0x"),
            )
        except ValueError as e:
            raise BridgeError.integrity("malformed log", error=str(e), log=obj) from e

    def to_rpc(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "topics": ["0x" + t.hex() for t in self.topics],
            "data": "0x" + self.data.hex(),
        }
        if self.address is not None:
            out["address"] = self.address
        if self.block_number is not None:
            out["blockNumber"] = hex(self.block_number)
        if self.transaction_hash is not None:
            out["transactionHash"] = self.transaction_hash
        if self.log_index is not None:
            out["logIndex"] = hex(self.log_index)
        return out

    def same_content(self, other: "RawLog") -> bool:
        return self.topics == other.topics and self.data == other.data


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    logs: Tuple[RawLog, ...] = ()

    @classmethod
    def from_rpc(cls, obj: Any) -> "TransactionReceipt":
        if not isinstance(obj, dict):
            raise BridgeError.integrity("receipt is not a JSON object", value=obj)
        logs = obj.get("logs") or []
        if not isinstance(logs, list):
            raise BridgeError.integrity("receipt logs is not a list", value=logs)
        try:
            block_number = opt_hex_to_int(obj.get("blockNumber"))
        except ValueError as e:
            raise BridgeError.integrity("malformed receipt blockNumber", error=str(e)) from e
        return cls(
            transaction_hash=_norm_hash(obj.get("transactionHash"), "transactionHash"),
            block_number=block_number,
            logs=tuple(RawLog.from_rpc(lg) for lg in logs),
        )


@dataclass(frozen=True)
class Block:
    number: Optional[int] = None
    hash: Optional[str] = None

    @classmethod
    def from_rpc(cls, obj: Any) -> "Block":
        if not isinstance(obj, dict):
            raise BridgeError.integrity("block is not a JSON object", value=obj)
        try:
            number = opt_hex_to_int(obj.get("number"))
        except ValueError as e:
            raise BridgeError.integrity("malformed block number", error=str(e)) from e
        return cls(number=number, hash=_norm_hash(obj.get("hash"), "hash"))


@dataclass(frozen=True)
class VerifiedLog:
    """A log whose block, transaction and position inside the transaction are resolved."""
    block_number: int
    tx_hash: str
    log_index_in_tx: int
    log: RawLog = field(repr=False)

    def __post_init__(self):
        if not 0 <= self.log_index_in_tx <= MAX_LOG_INDEX_IN_TX:
            raise ValueError(f"log_index_in_tx out of range: {self.log_index_in_tx}")

    @property
    def sort_key(self) -> Tuple[int, int, str]:
        return (self.block_number, self.log_index_in_tx, self.tx_hash)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "block_number": self.block_number,
            "tx_hash": self.tx_hash,
            "log_index_in_tx": self.log_index_in_tx,
            "log_index": self.log.log_index,
            "address": self.log.address,
            "topics": ["0x" + t.hex() for t in self.log.topics],
            "data": "0x" + self.log.data.hex(),
        }
