"""Static network registry.

All per-network constants live here: SS58 prefix, token decimals and
symbol, Subscan explorer/API hosts and public RPC endpoints. The registry is
built once at import time and exposed read-only; components take it as an
argument so tests can pass their own definitions.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel

from .errors import ConfigurationError


class Network(BaseModel):
    """Immutable configuration for one Substrate network."""

    key: str
    name: str
    ss58_format: int
    decimals: int
    symbol: str
    explorer_base_url: str
    indexer_api_base_url: str
    rpc_endpoints: tuple[str, ...]

    class Config:
        frozen = True

    @property
    def default_rpc_endpoint(self) -> str:
        return self.rpc_endpoints[0]

    def extrinsic_url(self, extrinsic_hash: str) -> str:
        """Explorer page for an extrinsic."""
        return f"{self.explorer_base_url}/extrinsic/{extrinsic_hash}"

    def account_url(self, address: str) -> str:
        """Explorer page for an account."""
        return f"{self.explorer_base_url}/account/{address}"


NETWORKS: Mapping[str, Network] = MappingProxyType({
    "polkadot": Network(
        key="polkadot",
        name="Polkadot",
        ss58_format=0,
        decimals=10,
        symbol="DOT",
        explorer_base_url="https://polkadot.subscan.io",
        indexer_api_base_url="https://polkadot.api.subscan.io",
        rpc_endpoints=(
            "wss://rpc.polkadot.io",
            "wss://polkadot-rpc.dwellir.com",
            "wss://polkadot.api.onfinality.io/public-ws",
        ),
    ),
    "kusama": Network(
        key="kusama",
        name="Kusama",
        ss58_format=2,
        decimals=12,
        symbol="KSM",
        explorer_base_url="https://kusama.subscan.io",
        indexer_api_base_url="https://kusama.api.subscan.io",
        rpc_endpoints=(
            "wss://kusama-rpc.polkadot.io",
            "wss://kusama-rpc.dwellir.com",
            "wss://kusama.api.onfinality.io/public-ws",
        ),
    ),
    "westend": Network(
        key="westend",
        name="Westend",
        ss58_format=42,
        decimals=12,
        symbol="WND",
        explorer_base_url="https://westend.subscan.io",
        indexer_api_base_url="https://westend.api.subscan.io",
        rpc_endpoints=(
            "wss://westend-rpc.polkadot.io",
            "wss://westend-rpc.dwellir.com",
        ),
    ),
})


def get_network(
    network: str | Network,
    registry: Mapping[str, Network] = NETWORKS,
) -> Network:
    """Resolve a network by name. Raises ConfigurationError for unknown names."""
    if isinstance(network, Network):
        return network
    try:
        return registry[network.lower()]
    except (KeyError, AttributeError):
        raise ConfigurationError(f"Unknown network: {network}") from None


def known_ss58_formats(registry: Mapping[str, Network] = NETWORKS) -> tuple[int, ...]:
    """SS58 prefixes of every registered network, in registry order."""
    return tuple(dict.fromkeys(n.ss58_format for n in registry.values()))
