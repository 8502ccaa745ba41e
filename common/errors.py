"""
common.errors

Classified errors returned by the ingestion core.

Every failure is a BridgeError tagged with a BridgeErrorKind. Callers branch on
``err.kind`` (or ``err.retryable``) instead of parsing messages; ``err.context``
carries the hashes and expected/actual values needed to log without re-querying.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict


class BridgeErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    TRANSIENT_UNAVAILABLE = "transient_unavailable"
    NOT_YET_FINALIZED = "not_yet_finalized"
    PROVIDER_INTEGRITY = "provider_integrity"
    NO_EVENT_AT_POSITION = "no_event_at_position"
    NOT_ACTIONABLE = "not_actionable"
    RPC_REJECTED = "rpc_rejected"


RETRYABLE_KINDS = frozenset({
    BridgeErrorKind.TRANSIENT_UNAVAILABLE,
    BridgeErrorKind.NOT_YET_FINALIZED,
})


class BridgeError(RuntimeError):
    def __init__(self, kind: BridgeErrorKind, message: str, **context: Any):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context: Dict[str, Any] = context

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def __str__(self) -> str:
        if not self.context:
            return f"{self.kind.value}: {self.message}"
        ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.kind.value}: {self.message} ({ctx})"

    def __repr__(self) -> str:
        return f"BridgeError({self.kind.name}, {self.message!r}, {self.context!r})"

    # constructors, one per kind

    @classmethod
    def not_found(cls, tx_hash: str) -> "BridgeError":
        return cls(BridgeErrorKind.NOT_FOUND, "transaction not found", tx_hash=tx_hash)

    @classmethod
    def transient(cls, message: str, **context: Any) -> "BridgeError":
        return cls(BridgeErrorKind.TRANSIENT_UNAVAILABLE, message, **context)

    @classmethod
    def not_finalized(cls, tx_hash: str, block_number: int, finalized: int) -> "BridgeError":
        return cls(
            BridgeErrorKind.NOT_YET_FINALIZED,
            "transaction is not finalized yet",
            tx_hash=tx_hash,
            block_number=block_number,
            finalized_block=finalized,
        )

    @classmethod
    def integrity(cls, message: str, **context: Any) -> "BridgeError":
        return cls(BridgeErrorKind.PROVIDER_INTEGRITY, message, **context)

    @classmethod
    def no_event(cls, tx_hash: str, event_index: int, reason: str) -> "BridgeError":
        return cls(
            BridgeErrorKind.NO_EVENT_AT_POSITION,
            "no bridge event at this position",
            tx_hash=tx_hash,
            event_index=event_index,
            reason=reason,
        )

    @classmethod
    def not_actionable(cls, tx_hash: str, event_index: int, event_type: str) -> "BridgeError":
        return cls(
            BridgeErrorKind.NOT_ACTIONABLE,
            "bridge event is not actionable",
            tx_hash=tx_hash,
            event_index=event_index,
            event_type=event_type,
        )

    @classmethod
    def rpc_rejected(cls, method: str, code: Any, message: str) -> "BridgeError":
        return cls(BridgeErrorKind.RPC_REJECTED, "provider rejected request", method=method, code=code, rpc_message=message)
