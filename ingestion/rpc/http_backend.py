# ingestion/rpc/http_backend.py

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, List

import requests

from common.errors import BridgeError

logger = logging.getLogger(__name__)

# json-rpc error codes providers use for throttling
_THROTTLE_CODES = (429, -32005)


class HttpTransport:
    """
    JSON-RPC over HTTPS using requests.

    Each call is an independent requests.post, run in a worker thread so the
    event loop is never blocked and concurrent callers share no session state.
    Transport failures (timeouts, connection errors, 429, 5xx) are retried with
    capped exponential backoff; JSON-RPC errors are classified, never retried.
    """

    def __init__(self, url: str, timeout: float = 30.0, max_retries: int = 3, backoff_seconds: float = 0.5):
        self.url = url
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.backoff_seconds = backoff_seconds

    async def request(self, method: str, params: List[Any]) -> Any:
        return await asyncio.to_thread(self._post, method, params)

    def _sleep_for(self, attempt: int) -> float:
        sleep_s = min(self.backoff_seconds * (2 ** (attempt - 1)), 12.0)
        return sleep_s * (0.8 + 0.4 * random.random())

    def _post(self, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        attempt = 0
        while True:
            try:
                resp = requests.post(self.url, json=payload, timeout=self.timeout)
                # handle http status first, other 4xx carry the provider's answer in the body
                if resp.status_code == 429 or 500 <= resp.status_code < 600:
                    raise requests.HTTPError(f"{resp.status_code} server retryable")
                break
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as e:
                attempt += 1
                if attempt > self.max_retries:
                    raise BridgeError.transient(
                        "RPC transport failed", method=method, attempts=attempt, error=str(e)
                    ) from e
                sleep_s = self._sleep_for(attempt)
                logger.warning("RPC %s failed (%s), retry %d/%d in %.2fs", method, e, attempt, self.max_retries, sleep_s)
                time.sleep(sleep_s)

        try:
            data = resp.json()
        except ValueError as e:
            raise BridgeError.integrity("RPC response is not JSON", method=method, status=resp.status_code) from e
        if not isinstance(data, dict):
            raise BridgeError.integrity("RPC response is not a JSON object", method=method, status=resp.status_code)

        if "error" in data:
            err = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
            code = err.get("code")
            msg = str(err.get("message", err))
            # some providers also encode rate limit in json error
            if code in _THROTTLE_CODES or "rate limit" in msg.lower() or "too many requests" in msg.lower():
                raise BridgeError.transient("RPC throttled", method=method, code=code, rpc_message=msg)
            raise BridgeError.rpc_rejected(method, code, msg)
        if resp.status_code >= 400:
            raise BridgeError.rpc_rejected(method, resp.status_code, f"HTTP {resp.status_code} without error object")
        if "result" not in data:
            raise BridgeError.integrity("RPC response has neither result nor error", method=method)
        return data["result"]
