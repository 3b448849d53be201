"""Subscan indexer client.

Live chain RPC cannot resolve "extrinsic by hash" without a maintained index,
so lookups go to an external block explorer. The verifier depends only on the
``ExtrinsicLookup`` / ``BlockLookup`` protocols below; ``SubscanClient`` is the
default implementation and any other indexer can be dropped in.

One HTTP request per call. No retries, no caching, and no timeout unless the
caller passes one.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, Field

from .errors import IndexerError, IndexerHTTPError
from .networks import NETWORKS, Network, get_network

logger = logging.getLogger(__name__)

INDEXER_NAME = "Subscan"
EXTRINSIC_PATH = "/api/scan/extrinsic"
BLOCK_PATH = "/api/scan/block"


# =============================================================================
# Models
# =============================================================================


class ExtrinsicRecord(BaseModel):
    """An extrinsic as reported by the indexer."""

    block_number: int = Field(alias="block_num")
    block_timestamp: int
    extrinsic_index: Optional[str] = None
    account_id: Optional[str] = None
    call_module: str
    call_function: str = Field(alias="call_module_function")
    extrinsic_hash: str
    success: bool
    fee: Optional[str] = None

    class Config:
        populate_by_name = True
        extra = "ignore"


class BlockEvent(BaseModel):
    """An event emitted in a block. ``params`` is a JSON string."""

    event_index: str
    extrinsic_hash: Optional[str] = None
    module_id: str
    event_id: str
    params: Optional[str] = None

    class Config:
        extra = "ignore"

    def decoded_params(self) -> list[dict[str, Any]]:
        """Parse ``params`` into a list of ``{name, type, value}`` dicts."""
        if not self.params:
            return []
        try:
            decoded = json.loads(self.params)
        except (TypeError, ValueError):
            return []
        return decoded if isinstance(decoded, list) else []


class BlockExtrinsic(BaseModel):
    """Summary of an extrinsic inside a block detail response."""

    extrinsic_hash: str
    call_module: str
    call_function: str = Field(alias="call_module_function")
    success: bool
    fee: Optional[str] = None

    class Config:
        populate_by_name = True
        extra = "ignore"


class BlockDetail(BaseModel):
    """A block with its events and extrinsics."""

    block_number: int = Field(alias="block_num")
    block_timestamp: int
    events: list[BlockEvent] = Field(default_factory=list)
    extrinsics: list[BlockExtrinsic] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        extra = "ignore"


# =============================================================================
# Capabilities
# =============================================================================


@runtime_checkable
class ExtrinsicLookup(Protocol):
    """Anything that can resolve an extrinsic by hash."""

    async def get_extrinsic_detail(self, extrinsic_hash: str) -> ExtrinsicRecord:
        ...


@runtime_checkable
class BlockLookup(Protocol):
    """Anything that can fetch a block with its events."""

    async def get_block_detail(
        self,
        *,
        block_hash: Optional[str] = None,
        block_num: Optional[int] = None,
        block_timestamp: Optional[int] = None,
        only_head: bool = False,
    ) -> BlockDetail:
        ...


# =============================================================================
# Subscan
# =============================================================================


class SubscanClient:
    """Thin async client over the Subscan scan API.

    Usage::

        client = SubscanClient("polkadot", api_key)
        record = await client.get_extrinsic_detail("0x...")

    Pass ``http_client`` to reuse an ``httpx.AsyncClient``; otherwise each
    call opens and closes its own.
    """

    def __init__(
        self,
        network: str | Network,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        registry: Mapping[str, Network] = NETWORKS,
    ) -> None:
        self.network = get_network(network, registry)
        self._base_url = self.network.indexer_api_base_url.rstrip("/")
        self._api_key = api_key
        self._http_client = http_client
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _post_json(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST to the scan API and unwrap the ``{code, message, data}`` envelope."""
        url = f"{self._base_url}{path}"
        headers = {
            "content-type": "application/json",
            "x-api-key": self._api_key,
        }

        if self._http_client is not None:
            response = await self._http_client.post(url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=body, headers=headers)

        if not response.is_success:
            logger.warning("%s %s returned HTTP %s", INDEXER_NAME, path, response.status_code)
            raise IndexerHTTPError(
                f"{INDEXER_NAME} HTTP {response.status_code}", response.status_code
            )

        envelope = response.json()
        code = envelope.get("code")
        data = envelope.get("data")
        if code != 0 or not data:
            raise IndexerError(
                f"{INDEXER_NAME} error: {envelope.get('message')}", code=code
            )
        return data

    async def get_extrinsic_detail(self, extrinsic_hash: str) -> ExtrinsicRecord:
        """Look up an extrinsic by hash."""
        data = await self._post_json(EXTRINSIC_PATH, {"hash": extrinsic_hash})
        return ExtrinsicRecord.model_validate(data)

    async def get_block_detail(
        self,
        *,
        block_hash: Optional[str] = None,
        block_num: Optional[int] = None,
        block_timestamp: Optional[int] = None,
        only_head: bool = False,
    ) -> BlockDetail:
        """Fetch a block by exactly one of hash, number or timestamp."""
        selectors = {
            "block_hash": block_hash,
            "block_num": block_num,
            "block_timestamp": block_timestamp,
        }
        given = {key: value for key, value in selectors.items() if value is not None}
        if len(given) != 1:
            raise ValueError(
                "Exactly one of block_hash, block_num or block_timestamp is required"
            )

        body: dict[str, Any] = dict(given)
        if only_head:
            body["only_head"] = True
        data = await self._post_json(BLOCK_PATH, body)
        return BlockDetail.model_validate(data)
