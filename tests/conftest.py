"""
Pytest fixtures and test configuration for polkapay tests.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from polkapay.config import get_settings
from polkapay.indexer import BlockDetail, BlockEvent, ExtrinsicRecord

# Well-known development accounts (//Alice, //Bob)
ALICE_PUBLIC_KEY = "d43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d"
ALICE_POLKADOT = "15oF4uVJwmo4TdGW7VfQxNLavjCXviqxT9S1MgbjMNHr6Sp5"
ALICE_KUSAMA = "HNZata7iMYWmk5RvZRTiAsSDhV8366zq2YGb3tLH5Upf74F"
ALICE_GENERIC = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
BOB_POLKADOT = "14E5nqKAp3oAJcmzgZhUD2RcptBeUBScxKHgJKU4HPNcKVf3"
BOB_PUBLIC_KEY = "8eaf04151687736326c9fea17e25fc5287613693c912909cb226aa4794f26a48"
KUSAMA_ADDRESS = "CpjsLDC1JFyrhm3ftC9Gs4QoyrkHKhZKtK7YqGTRFtTafgp"

TX_HASH = "0x" + "ab" * 32
FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

_ENV_VARS = (
    "SUBSCAN_API_KEY",
    "INDEXER_TIMEOUT",
    "POLKADOT_NETWORK",
    "POLKADOT_RPC_ENDPOINT",
    "VERIFY_TRANSFER_AMOUNT",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from the caller's environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_extrinsic(**overrides: Any) -> ExtrinsicRecord:
    """Build an indexer extrinsic record for a successful transfer."""
    data = {
        "block_num": 18_000_000,
        "block_timestamp": 1_700_000_000,
        "extrinsic_index": "18000000-2",
        "call_module": "balances",
        "call_module_function": "transfer_keep_alive",
        "extrinsic_hash": TX_HASH,
        "success": True,
        "fee": "156000000",
    }
    data.update(overrides)
    return ExtrinsicRecord.model_validate(data)


def make_transfer_event(
    sender_key: str,
    recipient_key: str,
    amount: str,
    extrinsic_hash: str = TX_HASH,
) -> BlockEvent:
    """Build a ``balances.Transfer`` event in Subscan's params format."""
    params = [
        {"type": "[U8; 32]", "type_name": "AccountId", "name": "from", "value": "0x" + sender_key},
        {"type": "[U8; 32]", "type_name": "AccountId", "name": "to", "value": "0x" + recipient_key},
        {"type": "U128", "type_name": "Balance", "name": "amount", "value": amount},
    ]
    return BlockEvent(
        event_index="18000000-5",
        extrinsic_hash=extrinsic_hash,
        module_id="balances",
        event_id="Transfer",
        params=json.dumps(params),
    )


class FakeIndexer:
    """In-memory indexer implementing both lookup protocols."""

    def __init__(
        self,
        extrinsic: Optional[ExtrinsicRecord] = None,
        block: Optional[BlockDetail] = None,
    ) -> None:
        self.extrinsic = extrinsic or make_extrinsic()
        self.block = block
        self.extrinsic_calls: list[str] = []
        self.block_calls: list[dict] = []

    async def get_extrinsic_detail(self, extrinsic_hash: str) -> ExtrinsicRecord:
        self.extrinsic_calls.append(extrinsic_hash)
        return self.extrinsic

    async def get_block_detail(
        self,
        *,
        block_hash=None,
        block_num=None,
        block_timestamp=None,
        only_head=False,
    ) -> BlockDetail:
        self.block_calls.append({"block_num": block_num, "block_hash": block_hash})
        return self.block


@pytest.fixture
def extrinsic():
    return make_extrinsic()


@pytest.fixture
def mock_indexer(extrinsic):
    """AsyncMock indexer answering with a successful transfer."""
    indexer = AsyncMock()
    indexer.get_extrinsic_detail.return_value = extrinsic
    return indexer


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW
