from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound

from app.config import get_settings
from chain.chains import get_rpc_url
from chain.abis import ERC20_ABI

logger = logging.getLogger(__name__)


class Web3RPCError(RuntimeError):
    pass


class SignerNotConfiguredError(RuntimeError):
    pass


@lru_cache
def _get_web3(chain_id: int) -> Web3:
    """
    Lazily create and cache a Web3 instance per chain_id.
    """
    rpc_url = get_rpc_url(chain_id)
    timeout = get_settings().rpc_timeout_s
    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    if not w3.is_connected():
        raise Web3RPCError(f"Unable to connect to RPC for chain_id={chain_id}")

    return w3


def get_web3(chain_id: int) -> Web3:
    return _get_web3(chain_id)


# ---------------------------
# Native chain helpers
# ---------------------------

def get_native_balance(chain_id: int, address: str) -> int:
    """
    Return native token balance in wei.
    """
    w3 = _get_web3(chain_id)
    try:
        return w3.eth.get_balance(Web3.to_checksum_address(address))
    except Exception as e:
        raise Web3RPCError(f"get_native_balance failed: {e}") from e


def get_transaction_receipt(chain_id: int, tx_hash: str) -> dict[str, Any] | None:
    """
    Return the receipt as a plain dict, or None while the tx is not mined.
    """
    w3 = _get_web3(chain_id)
    try:
        receipt = w3.eth.get_transaction_receipt(tx_hash)
    except TransactionNotFound:
        return None
    except Exception as e:
        raise Web3RPCError(f"get_transaction_receipt failed: {e}") from e
    return {
        "status": int(receipt["status"]),
        "blockNumber": int(receipt["blockNumber"]),
        "gasUsed": int(receipt["gasUsed"]),
    }


def transaction_exists(chain_id: int, tx_hash: str) -> bool:
    w3 = _get_web3(chain_id)
    try:
        w3.eth.get_transaction(tx_hash)
        return True
    except TransactionNotFound:
        return False
    except Exception as e:
        raise Web3RPCError(f"get_transaction failed: {e}") from e


# ---------------------------
# ERC20 helpers
# ---------------------------

def _erc20_contract(chain_id: int, token_address: str):
    w3 = _get_web3(chain_id)
    return w3.eth.contract(
        address=Web3.to_checksum_address(token_address),
        abi=ERC20_ABI,
    )


def erc20_balance(chain_id: int, token_address: str, owner: str) -> int:
    """
    Return ERC20 balance (raw uint256).
    """
    try:
        contract = _erc20_contract(chain_id, token_address)
        return contract.functions.balanceOf(
            Web3.to_checksum_address(owner)
        ).call()
    except ContractLogicError as e:
        raise Web3RPCError(f"erc20_balance reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"erc20_balance failed: {e}") from e


def erc20_decimals(chain_id: int, token_address: str) -> int:
    """
    Return ERC20 decimals.
    """
    try:
        contract = _erc20_contract(chain_id, token_address)
        return contract.functions.decimals().call()
    except Exception as e:
        raise Web3RPCError(f"erc20_decimals failed: {e}") from e


def erc20_transfer_data(chain_id: int, token_address: str, to: str, amount: int) -> dict[str, Any]:
    """
    Return an unsigned {to, data, value} call for ERC20 transfer.
    """
    contract = _erc20_contract(chain_id, token_address)
    data = contract.encode_abi("transfer", args=[Web3.to_checksum_address(to), amount])
    return {"to": contract.address, "data": data, "value": 0}


# ---------------------------
# Fees + sending
# ---------------------------

def estimate_gas(chain_id: int, tx: dict[str, Any]) -> int:
    """
    Estimate gas for a transaction dict.
    """
    w3 = _get_web3(chain_id)
    try:
        return w3.eth.estimate_gas(tx)
    except ContractLogicError as e:
        raise Web3RPCError(f"estimate_gas reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"estimate_gas failed: {e}") from e


def get_fee_quote(chain_id: int) -> dict[str, Any]:
    """
    Return either legacy gasPrice or EIP-1559 fee fields.
    """
    w3 = _get_web3(chain_id)
    try:
        block = w3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is not None:
            try:
                max_priority = w3.eth.max_priority_fee
            except Exception:
                max_priority = None

            if max_priority is None:
                gas_price = w3.eth.gas_price
                max_priority = max(gas_price - base_fee, 0)

            max_fee = base_fee + (max_priority * 2)
            return {
                "maxFeePerGas": int(max_fee),
                "maxPriorityFeePerGas": int(max_priority),
            }

        return {"gasPrice": int(w3.eth.gas_price)}
    except Exception as e:
        raise Web3RPCError(f"get_fee_quote failed: {e}") from e


def signer_address() -> str | None:
    key = get_settings().SIGNER_PRIVATE_KEY
    if not key:
        return None
    return Account.from_key(key).address


def send_transaction(
    chain_id: int,
    tx: dict[str, Any],
    *,
    wait: bool = True,
    timeout_s: int = 120,
) -> str:
    """
    Fill, sign with the configured key, broadcast. Returns the tx hash (0x hex).
    """
    key = get_settings().SIGNER_PRIVATE_KEY
    if not key:
        raise SignerNotConfiguredError("No signer private key configured")

    w3 = _get_web3(chain_id)
    account = Account.from_key(key)
    tx = dict(tx)
    tx["from"] = account.address
    tx["chainId"] = chain_id
    tx["to"] = Web3.to_checksum_address(tx["to"])
    tx.setdefault("value", 0)

    try:
        tx["nonce"] = w3.eth.get_transaction_count(account.address, "pending")
        if "gas" not in tx:
            tx["gas"] = estimate_gas(chain_id, tx)
        tx.update(get_fee_quote(chain_id))

        signed = account.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info("tx sent chain_id=%s hash=%s", chain_id, tx_hash.hex())

        if wait:
            receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout_s)
            if receipt["status"] != 1:
                raise Web3RPCError(f"transaction reverted: {tx_hash.hex()}")
    except Web3RPCError:
        raise
    except ContractLogicError as e:
        raise Web3RPCError(f"send_transaction reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"send_transaction failed: {e}") from e

    return Web3.to_hex(tx_hash)
