"""
common.utils

Hex helpers for JSON-RPC quantities and byte strings.
"""
import re
from typing import Optional

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def hex_to_int(v) -> int:
    """
    Decode a JSON-RPC quantity. Accepts 0x hex strings and plain ints,
    raises ValueError for anything else.
    """
    if isinstance(v, bool):
        raise ValueError(f"not a quantity: {v!r}")
    if isinstance(v, int):
        if v < 0:
            raise ValueError(f"negative quantity: {v!r}")
        return v
    if not isinstance(v, str) or not v.startswith(("0x", "0X")):
        raise ValueError(f"not a hex quantity: {v!r}")
    h = v[2:]
    if not h or not _HEX_RE.match(h):
        raise ValueError(f"not a hex quantity: {v!r}")
    return int(h, 16)


def opt_hex_to_int(v) -> Optional[int]:
    return None if v is None else hex_to_int(v)


def hex_to_bytes(v) -> bytes:
    if not isinstance(v, str):
        raise ValueError(f"not a hex string: {v!r}")
    h = strip_0x(v)
    if len(h) % 2 or not _HEX_RE.match(h):
        raise ValueError(f"not a hex string: {v!r}")
    return bytes.fromhex(h)


def is_hex_address(addr) -> bool:
    if not isinstance(addr, str) or not addr.startswith("0x"):
        return False
    h = addr[2:]
    return len(h) == 40 and bool(_HEX_RE.match(h))


def is_tx_hash(tx_hash) -> bool:
    if not isinstance(tx_hash, str) or not tx_hash.startswith("0x"):
        return False
    h = tx_hash[2:]
    return len(h) == 64 and bool(_HEX_RE.match(h))
