# bridge/events.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Union

from ingestion.models import VerifiedLog

# keccak256("TokensDeposited(uint8,uint64,uint8,uint8,uint64,address,bytes)")
TOKENS_DEPOSITED_TOPIC0 = bytes.fromhex("a0f1d54820817ede8517e70a3d0a9197c015471c5360d2119b759f0359858ce6")
# keccak256("TokensClaimed(uint8,uint64,uint8,uint8,uint256,bytes,address)")
TOKENS_CLAIMED_TOPIC0 = bytes.fromhex("933e8377dca7a8cf67d2bf865c4d8c1c45347815760900f9d2eb5655a06943af")

WORD = 32


@dataclass(frozen=True)
class TokensDeposited:
    source_chain_id: int
    nonce: int
    destination_chain_id: int
    token_id: int
    amount: int  # adjusted to the destination chain's decimals
    sender_address: str
    recipient_address: bytes

    name = "TokensDeposited"


@dataclass(frozen=True)
class TokensClaimed:
    source_chain_id: int
    nonce: int
    destination_chain_id: int
    token_id: int
    amount: int
    sender_address: bytes
    recipient_address: str

    name = "TokensClaimed"


BridgeEvent = Union[TokensDeposited, TokensClaimed]


class EventDecoder(Protocol):
    def decode(self, log: VerifiedLog) -> Optional[BridgeEvent]:
        ...


def _uint(word: bytes, bits: int) -> Optional[int]:
    v = int.from_bytes(word, "big")
    return v if v < (1 << bits) else None


def _address(word: bytes) -> Optional[str]:
    # left padded, the first 12 bytes must be zero
    if any(word[:12]):
        return None
    return "0x" + word[12:].hex()


def _words(data: bytes, n: int) -> Optional[List[bytes]]:
    if len(data) < n * WORD:
        return None
    return [data[i * WORD:(i + 1) * WORD] for i in range(n)]


def _dynamic_bytes(data: bytes, offset: Optional[int]) -> Optional[bytes]:
    if offset is None or offset + WORD > len(data):
        return None
    length = int.from_bytes(data[offset:offset + WORD], "big")
    start = offset + WORD
    if start + length > len(data):
        return None
    return data[start:start + length]


def _indexed(topics) -> Optional[tuple]:
    # topic0 plus three indexed fields
    if len(topics) != 4:
        return None
    src, nonce, dst = _uint(topics[1], 8), _uint(topics[2], 64), _uint(topics[3], 8)
    if src is None or nonce is None or dst is None:
        return None
    return src, nonce, dst


def decode_tokens_deposited(topics, data: bytes) -> Optional[TokensDeposited]:
    idx = _indexed(topics)
    words = _words(data, 4)
    if idx is None or words is None:
        return None
    token_id = _uint(words[0], 8)
    amount = _uint(words[1], 64)
    sender = _address(words[2])
    recipient = _dynamic_bytes(data, _uint(words[3], 32))
    if token_id is None or amount is None or sender is None or recipient is None:
        return None
    return TokensDeposited(
        source_chain_id=idx[0],
        nonce=idx[1],
        destination_chain_id=idx[2],
        token_id=token_id,
        amount=amount,
        sender_address=sender,
        recipient_address=recipient,
    )


def decode_tokens_claimed(topics, data: bytes) -> Optional[TokensClaimed]:
    idx = _indexed(topics)
    words = _words(data, 4)
    if idx is None or words is None:
        return None
    token_id = _uint(words[0], 8)
    amount = _uint(words[1], 256)
    sender = _dynamic_bytes(data, _uint(words[2], 32))
    recipient = _address(words[3])
    if token_id is None or amount is None or sender is None or recipient is None:
        return None
    return TokensClaimed(
        source_chain_id=idx[0],
        nonce=idx[1],
        destination_chain_id=idx[2],
        token_id=token_id,
        amount=amount,
        sender_address=sender,
        recipient_address=recipient,
    )


_DECODERS = {
    TOKENS_DEPOSITED_TOPIC0: decode_tokens_deposited,
    TOKENS_CLAIMED_TOPIC0: decode_tokens_claimed,
}


class BridgeEventDecoder:
    """
    Decode logs of the bridge contract. Returns None when the log is not a
    known bridge event, was emitted by another contract, or is malformed.
    """

    def __init__(self, contract: Optional[str] = None):
        self.contract = contract.lower() if contract else None

    def decode(self, log: VerifiedLog) -> Optional[BridgeEvent]:
        raw = log.log
        if self.contract is not None and raw.address != self.contract:
            return None
        if not raw.topics:
            return None
        fn = _DECODERS.get(raw.topics[0])
        if fn is None:
            return None
        return fn(raw.topics, raw.data)
