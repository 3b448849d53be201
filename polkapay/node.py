"""Minimal JSON-RPC access to a Substrate node.

Only for node-level queries outside verification: current block height,
block hashes and account balances. Public nodes serve the same JSON-RPC over
HTTPS as over WebSocket, so registry ``wss://`` endpoints are called as
``https://``.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Mapping, Optional

import httpx

from .address import decode_address
from .config import get_settings
from .errors import TransportError
from .networks import NETWORKS, Network, get_network

logger = logging.getLogger(__name__)

# twox128("System") ++ twox128("Account")
SYSTEM_ACCOUNT_PREFIX = "26aa394eea5630e07c48ae0c9558cef7b99d880ec681799c0cf30e8886371da9"

# AccountInfo: nonce, consumers, providers, sufficients (u32 each), then
# AccountData: free, reserved, frozen, flags (u128 each, little-endian)
_ACCOUNT_DATA_OFFSET = 16
_BALANCE_FIELDS = ("free", "reserved", "frozen")


def http_endpoint(endpoint: str) -> str:
    """Map a ws(s):// RPC endpoint to its http(s):// equivalent."""
    if endpoint.startswith("wss://"):
        return "https://" + endpoint[len("wss://"):]
    if endpoint.startswith("ws://"):
        return "http://" + endpoint[len("ws://"):]
    return endpoint


def account_storage_key(address: str) -> str:
    """Storage key of ``System.Account`` for *address* (blake2_128concat hasher)."""
    public_key, _ = decode_address(address)
    hashed = hashlib.blake2b(public_key, digest_size=16).digest()
    return "0x" + SYSTEM_ACCOUNT_PREFIX + (hashed + public_key).hex()


def decode_account_balance(storage: Optional[str]) -> dict[str, str]:
    """Decode free/reserved/frozen from a SCALE-encoded ``AccountInfo``.

    A missing entry is an account that was never funded (or was reaped).
    """
    if storage is None:
        return {field: "0" for field in _BALANCE_FIELDS}

    raw = bytes.fromhex(storage[2:] if storage.startswith("0x") else storage)
    end = _ACCOUNT_DATA_OFFSET + 16 * len(_BALANCE_FIELDS)
    if len(raw) < end:
        raise TransportError(f"Unexpected AccountInfo length: {len(raw)}")

    balances = {}
    for i, field in enumerate(_BALANCE_FIELDS):
        start = _ACCOUNT_DATA_OFFSET + 16 * i
        balances[field] = str(int.from_bytes(raw[start:start + 16], "little"))
    return balances


class NodeClient:
    """JSON-RPC client for one network's node.

    Pass ``http_client`` to share an ``httpx.AsyncClient`` across calls;
    otherwise each call opens and closes its own.
    """

    def __init__(
        self,
        network: str | Network = "polkadot",
        endpoint: Optional[str] = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        registry: Mapping[str, Network] = NETWORKS,
    ) -> None:
        self.network = get_network(network, registry)
        endpoint = endpoint or get_settings().polkadot_rpc_endpoint
        self.endpoint = http_endpoint(endpoint or self.network.default_rpc_endpoint)
        self._http_client = http_client
        self._timeout = timeout
        self._request_id = 0

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.endpoint, json=payload)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(self.endpoint, json=payload)

    async def _rpc_call(self, method: str, params: list) -> Any:
        """Call *method* and return its ``result``; RPC errors raise TransportError."""
        self._request_id += 1
        response = await self._post({
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        })
        response.raise_for_status()
        body = response.json()

        error = body.get("error")
        if error is not None:
            logger.warning("RPC %s on %s failed: %s", method, self.endpoint, error)
            raise TransportError(f"RPC error: {error}")
        return body.get("result")

    async def get_current_block(self) -> int:
        """Return the best block number."""
        header = await self._rpc_call("chain_getHeader", [])
        if not header or "number" not in header:
            raise TransportError("RPC returned no block header")
        return int(header["number"], 16)

    async def get_block_hash(self, block_number: int) -> Optional[str]:
        """Return the hash of *block_number*, or None if it does not exist yet."""
        return await self._rpc_call("chain_getBlockHash", [block_number])

    async def get_balance(self, address: str) -> dict[str, str]:
        """Return ``{free, reserved, frozen}`` of *address* in chain units.

        Raises:
            ValidationError: if *address* does not decode.
        """
        storage = await self._rpc_call("state_getStorage", [account_storage_key(address)])
        return decode_account_balance(storage)
