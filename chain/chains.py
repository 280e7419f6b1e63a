from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict

from app.config import get_settings


class UnsupportedChainError(ValueError):
    pass


@dataclass(frozen=True)
class Network:
    chain_id: int
    name: str
    native_symbol: str
    explorer_url: str
    is_testnet: bool


BASE_SEPOLIA = 84532
BASE_MAINNET = 8453
ETH_SEPOLIA = 11155111

NETWORKS: Dict[int, Network] = {
    BASE_SEPOLIA: Network(BASE_SEPOLIA, "Base Sepolia", "ETH", "https://sepolia.basescan.org", True),
    BASE_MAINNET: Network(BASE_MAINNET, "Base", "ETH", "https://basescan.org", False),
    ETH_SEPOLIA: Network(ETH_SEPOLIA, "Sepolia", "ETH", "https://sepolia.etherscan.io", True),
}


def _load_rpc_urls() -> Dict[int, str]:
    """
    Load RPC URLs from settings.

    Expected env format:
      RPC_URLS='{"84532":"https://sepolia.base.org","11155111":"https://rpc.sepolia.org"}'
    """
    settings = get_settings()

    raw = settings.RPC_URLS
    if not raw:
        return {}

    try:
        data = json.loads(raw)
    except Exception as e:
        raise ValueError("RPC_URLS must be valid JSON") from e

    rpc_urls: Dict[int, str] = {}
    for k, v in data.items():
        try:
            chain_id = int(k)
        except ValueError:
            raise ValueError(f"Invalid chain_id key in RPC_URLS: {k}")

        if not isinstance(v, str) or not v:
            raise ValueError(f"Invalid RPC URL for chain {chain_id}")

        rpc_urls[chain_id] = v.rstrip("/")

    return rpc_urls


def get_rpc_url(chain_id: int) -> str:
    """
    Return RPC URL for a given chain_id.
    Raises UnsupportedChainError if not configured.
    """
    rpc_url = _load_rpc_urls().get(chain_id)
    if not rpc_url:
        raise UnsupportedChainError(f"Unsupported chain_id: {chain_id}")
    return rpc_url


def get_network(chain_id: int) -> Network:
    network = NETWORKS.get(chain_id)
    if network is None:
        raise UnsupportedChainError(f"Unsupported chain_id: {chain_id}")
    return network


def get_usdc_address(chain_id: int) -> str:
    settings = get_settings()
    if chain_id == BASE_SEPOLIA:
        return settings.usdc_address_base_sepolia
    if chain_id == BASE_MAINNET:
        return settings.usdc_address_base_mainnet
    raise UnsupportedChainError(f"USDC is not configured for chain_id: {chain_id}")


def explorer_tx_url(chain_id: int, tx_hash: str) -> str:
    return f"{get_network(chain_id).explorer_url}/tx/{tx_hash}"


def list_supported_chains() -> list[int]:
    """
    List configured chain IDs.
    """
    return sorted(_load_rpc_urls().keys())
