# ingestion/rpc/scripted.py

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Protocol, Tuple, runtime_checkable

from common.errors import BridgeError


@runtime_checkable
class Transport(Protocol):
    """
    A JSON-RPC endpoint. ``request`` returns the ``result`` field of the
    response or raises BridgeError. Implementations must allow concurrent calls.
    """

    async def request(self, method: str, params: List[Any]) -> Any:
        ...


def _key(method: str, params: List[Any]) -> Tuple[str, str]:
    return method, json.dumps(params, sort_keys=True)


class ScriptedTransport:
    """
    In memory transport that answers from canned responses.

    rules
    one a response is looked up by method and params, params compared as json
    two add_response replaces an earlier response for the same request
    three every request is recorded, answered or not
    """

    def __init__(self) -> None:
        self._responses: Dict[Tuple[str, str], Any] = {}
        self.requests: List[Tuple[str, List[Any]]] = []

    def add_response(self, method: str, params: List[Any], result: Any) -> None:
        # json safe copy so later mutation by the test does not leak in
        self._responses[_key(method, params)] = json.loads(json.dumps(result))

    def calls(self, method: str) -> List[List[Any]]:
        return [p for m, p in self.requests if m == method]

    async def request(self, method: str, params: List[Any]) -> Any:
        self.requests.append((method, params))
        # yield control so concurrent callers interleave like real I/O
        await asyncio.sleep(0)
        key = _key(method, params)
        if key not in self._responses:
            raise BridgeError.rpc_rejected(method, None, f"no scripted response for params {key[1]}")
        return json.loads(json.dumps(self._responses[key]))
