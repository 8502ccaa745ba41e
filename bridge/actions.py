# bridge/actions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Tuple

from bridge.events import BridgeEvent, TokensDeposited


@dataclass(frozen=True)
class TokenDepositAction:
    """Relay a deposit on this chain to the destination chain."""
    tx_hash: str
    event_index: int
    event: TokensDeposited

    @property
    def key(self) -> Tuple[str, int]:
        # the (tx_hash, index in tx) pair is the idempotency key downstream
        return (self.tx_hash, self.event_index)

    def to_dict(self) -> Dict[str, Any]:
        ev = self.event
        return {
            "type": "token_deposit",
            "tx_hash": self.tx_hash,
            "event_index": self.event_index,
            "source_chain_id": ev.source_chain_id,
            "destination_chain_id": ev.destination_chain_id,
            "nonce": ev.nonce,
            "token_id": ev.token_id,
            "amount": ev.amount,
            "sender_address": ev.sender_address,
            "recipient_address": "0x" + ev.recipient_address.hex(),
        }


BridgeAction = TokenDepositAction


class ActionExtractor(Protocol):
    def extract(self, event: BridgeEvent, tx_hash: str, event_index: int) -> Optional[BridgeAction]:
        ...


class BridgeActionExtractor:
    """Only deposits are actionable; claims are informational."""

    def extract(self, event: BridgeEvent, tx_hash: str, event_index: int) -> Optional[BridgeAction]:
        if isinstance(event, TokensDeposited):
            return TokenDepositAction(tx_hash=tx_hash, event_index=event_index, event=event)
        return None
