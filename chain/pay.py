from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import requests
from web3 import Web3

from app.config import Settings
from chain import rpc
from chain.chains import get_network, get_usdc_address

logger = logging.getLogger(__name__)


class GaslessRelayError(RuntimeError):
    pass


class BasePayService:
    """
    ETH and USDC transfers on a Base network.
    """

    def __init__(self, *, chain_id: int, settings: Settings) -> None:
        self.chain_id = chain_id
        self.network = get_network(chain_id)
        self.usdc_address = get_usdc_address(chain_id)
        self.gasless_enabled = settings.GASLESS_ENABLED
        self.paymaster_url = settings.paymaster_url
        self.paymaster_method = settings.paymaster_method
        self.timeout_s = settings.rpc_timeout_s
        self._usdc_decimals: int | None = None

    def usdc_decimals(self) -> int:
        if self._usdc_decimals is None:
            self._usdc_decimals = rpc.erc20_decimals(self.chain_id, self.usdc_address)
        return self._usdc_decimals

    def get_balances(self, address: str) -> dict[str, Decimal]:
        """
        Return {symbol: amount} for ETH and USDC.
        """
        wei = rpc.get_native_balance(self.chain_id, address)
        raw_usdc = rpc.erc20_balance(self.chain_id, self.usdc_address, address)
        return {
            "ETH": Decimal(wei) / Decimal(10**18),
            "USDC": Decimal(raw_usdc) / Decimal(10 ** self.usdc_decimals()),
        }

    def build_transfer(self, *, to: str, amount: Decimal, token: str) -> dict[str, Any]:
        """
        Unsigned transaction for the wallet (or the server signer).
        """
        if token == "ETH":
            return {
                "to": Web3.to_checksum_address(to),
                "value": int(Web3.to_wei(amount, "ether")),
                "data": "0x",
                "chainId": self.chain_id,
            }
        if token == "USDC":
            raw = int(amount * (Decimal(10) ** self.usdc_decimals()))
            tx = rpc.erc20_transfer_data(self.chain_id, self.usdc_address, to, raw)
            tx["chainId"] = self.chain_id
            return tx
        raise ValueError(f"Unsupported token: {token}")

    def send(self, *, to: str, amount: Decimal, token: str) -> dict[str, Any]:
        """
        Broadcast a transfer.

        Returns {tx_hash, mode, tx}. mode is "gasless", "standard" or
        "unsigned" (no server signer: the wallet must sign tx itself).
        """
        tx = self.build_transfer(to=to, amount=amount, token=token)

        if rpc.signer_address() is None:
            return {"tx_hash": None, "mode": "unsigned", "tx": tx}

        if self.gasless_enabled:
            try:
                tx_hash = self._relay(tx)
                return {"tx_hash": tx_hash, "mode": "gasless", "tx": tx}
            except GaslessRelayError as e:
                logger.warning("gasless relay failed, falling back to standard send: %s", e)

        send_tx = {k: v for k, v in tx.items() if k != "chainId"}
        if send_tx.get("data") == "0x":
            send_tx.pop("data")
            send_tx["gas"] = 21000
        tx_hash = rpc.send_transaction(self.chain_id, send_tx, wait=False)
        return {"tx_hash": tx_hash, "mode": "standard", "tx": tx}

    def _relay(self, tx: dict[str, Any]) -> str:
        """
        Ask the paymaster to sponsor and submit the call.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": self.paymaster_method,
            "params": [
                {
                    "from": rpc.signer_address(),
                    "to": tx["to"],
                    "data": tx.get("data") or "0x",
                    "value": hex(int(tx.get("value") or 0)),
                    "chainId": hex(self.chain_id),
                }
            ],
        }
        try:
            resp = requests.post(self.paymaster_url, json=payload, timeout=self.timeout_s)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise GaslessRelayError(f"paymaster request failed: {e}") from e

        if body.get("error"):
            raise GaslessRelayError(f"paymaster error: {body['error']}")
        result = body.get("result")
        if isinstance(result, dict):
            result = result.get("txHash") or result.get("hash")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise GaslessRelayError("paymaster returned no transaction hash")
        return result

    def get_transaction_status(self, tx_hash: str) -> str:
        """
        confirmed | failed | pending | not_found
        """
        receipt = rpc.get_transaction_receipt(self.chain_id, tx_hash)
        if receipt is not None:
            return "confirmed" if receipt["status"] == 1 else "failed"
        if rpc.transaction_exists(self.chain_id, tx_hash):
            return "pending"
        return "not_found"
