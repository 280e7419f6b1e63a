from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from eth_utils import keccak, to_bytes
from web3 import Web3
from web3.exceptions import ContractLogicError

from app.config import Settings
from chain import rpc
from chain.abis import (
    ADDR_SELECTOR,
    BASE_REGISTRAR_ABI,
    ENS_REGISTRY_ABI,
    ETH_REGISTRAR_CONTROLLER_ABI,
    MULTICOIN_RESOLVER_ABI,
    PUBLIC_RESOLVER_ABI,
    UNIVERSAL_RESOLVER_ABI,
    ZERO_ADDRESS,
)
from chain.rpc import Web3RPCError

logger = logging.getLogger(__name__)

ETH_COIN_TYPE = 60


class InvalidENSNameError(ValueError):
    pass


def _labels(name: str) -> list[str]:
    labels = name.split(".")
    if not name or any(not label for label in labels):
        raise InvalidENSNameError(f"Invalid format: empty label in ENS name {name!r}")
    return labels


def namehash(name: str) -> bytes:
    node = b"\x00" * 32
    for label in reversed(_labels(name)):
        node = keccak(node + keccak(to_bytes(text=label)))
    return node


def labelhash(label: str) -> bytes:
    return keccak(to_bytes(text=label))


def dns_encode(name: str) -> bytes:
    """
    DNS wire format used by the universal resolver: <len><label>... 0x00
    """
    out = b""
    for label in _labels(name):
        raw = label.encode("utf-8")
        if len(raw) > 63:
            raise InvalidENSNameError(f"Invalid format: label too long: {label}")
        out += bytes([len(raw)]) + raw
    return out + b"\x00"


def _is_zero(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


@dataclass(frozen=True)
class ENSAddresses:
    registry: str
    base_registrar: str
    controller: str
    public_resolver: str
    universal_resolver: str
    reverse_registrar: str
    name_wrapper: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "ENSAddresses":
        return cls(
            registry=settings.ens_registry_address,
            base_registrar=settings.ens_base_registrar_address,
            controller=settings.ens_controller_address,
            public_resolver=settings.ens_public_resolver_address,
            universal_resolver=settings.ens_universal_resolver_address,
            reverse_registrar=settings.ens_reverse_registrar_address,
            name_wrapper=settings.ens_name_wrapper_address,
        )


class ENSContractManager:
    """
    Thin wrapper over the ENS contracts on one chain.

    Reads return plain python values. Writes sign with the configured key
    (see chain.rpc.send_transaction) and return the tx hash. Every failure is
    raised as Web3RPCError; callers decide how to present it.
    """

    def __init__(self, *, chain_id: int, addresses: ENSAddresses) -> None:
        self.chain_id = chain_id
        self.addresses = addresses

    # ---------------------------
    # Contracts
    # ---------------------------

    def _contract(self, address: str, abi: list[dict[str, Any]]):
        w3 = rpc.get_web3(self.chain_id)
        return w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def _registry(self):
        return self._contract(self.addresses.registry, ENS_REGISTRY_ABI)

    def _controller(self):
        return self._contract(self.addresses.controller, ETH_REGISTRAR_CONTROLLER_ABI)

    def _base_registrar(self):
        return self._contract(self.addresses.base_registrar, BASE_REGISTRAR_ABI)

    def _resolver_contract(self, address: str):
        return self._contract(address, PUBLIC_RESOLVER_ABI)

    def _call(self, label: str, fn):
        try:
            return fn()
        except ContractLogicError as e:
            raise Web3RPCError(f"{label} reverted: {e}") from e
        except Web3RPCError:
            raise
        except Exception as e:
            raise Web3RPCError(f"{label} failed: {e}") from e

    # ---------------------------
    # Reads
    # ---------------------------

    def is_available(self, name: str) -> bool:
        label = name.split(".")[0]
        return bool(self._call("available", lambda: self._controller().functions.available(label).call()))

    def rent_price(self, name: str, duration: int) -> tuple[int, int]:
        label = name.split(".")[0]
        price = self._call(
            "rentPrice",
            lambda: self._controller().functions.rentPrice(label, duration).call(),
        )
        return int(price[0]), int(price[1])

    def min_commitment_age(self) -> int:
        return int(self._call("minCommitmentAge", lambda: self._controller().functions.minCommitmentAge().call()))

    def owner(self, name: str) -> str:
        return self._call("owner", lambda: self._registry().functions.owner(namehash(name)).call())

    def resolver(self, name: str) -> str:
        return self._call("resolver", lambda: self._registry().functions.resolver(namehash(name)).call())

    def expiry(self, name: str) -> int | None:
        """
        Expiry timestamp from the base registrar; only .eth second-level names have one.
        """
        if not name.endswith(".eth") or name.count(".") != 1:
            return None
        token_id = int.from_bytes(labelhash(name.split(".")[0]), "big")
        expires = self._call(
            "nameExpires",
            lambda: self._base_registrar().functions.nameExpires(token_id).call(),
        )
        return int(expires) or None

    def _active_resolver(self, name: str) -> str:
        address = self.resolver(name)
        return self.addresses.public_resolver if _is_zero(address) else address

    def resolve(self, name: str) -> str | None:
        """
        Universal resolver first, then addr() on the name's resolver.
        """
        node = namehash(name)
        try:
            universal = self._contract(self.addresses.universal_resolver, UNIVERSAL_RESOLVER_ABI)
            result, _ = universal.functions.resolve(dns_encode(name), ADDR_SELECTOR + node).call()
            w3 = rpc.get_web3(self.chain_id)
            (address,) = w3.codec.decode(["address"], result)
            if not _is_zero(address):
                return Web3.to_checksum_address(address)
        except Exception as e:
            logger.info("universal resolver failed name=%s err=%s, trying public resolver", name, e)

        resolver = self._resolver_contract(self._active_resolver(name))
        address = self._call("addr", lambda: resolver.functions.addr(node).call())
        return None if _is_zero(address) else Web3.to_checksum_address(address)

    def reverse(self, address: str) -> str | None:
        reverse_name = f"{address.lower()[2:]}.addr.reverse"
        resolver_address = self.resolver(reverse_name)
        if _is_zero(resolver_address):
            return None
        resolver = self._resolver_contract(resolver_address)
        name = self._call("name", lambda: resolver.functions.name(namehash(reverse_name)).call())
        return name or None

    def text(self, name: str, key: str) -> str:
        resolver = self._resolver_contract(self._active_resolver(name))
        return self._call("text", lambda: resolver.functions.text(namehash(name), key).call()) or ""

    def addr(self, name: str, coin_type: int = ETH_COIN_TYPE) -> str | None:
        resolver_address = self._active_resolver(name)
        node = namehash(name)
        if coin_type == ETH_COIN_TYPE:
            address = self._call("addr", lambda: self._resolver_contract(resolver_address).functions.addr(node).call())
            return None if _is_zero(address) else Web3.to_checksum_address(address)
        multicoin = self._contract(resolver_address, MULTICOIN_RESOLVER_ABI)
        raw = self._call("addr", lambda: multicoin.functions.addr(node, coin_type).call())
        return Web3.to_hex(raw) if raw else None

    def contenthash(self, name: str) -> str | None:
        resolver = self._resolver_contract(self._active_resolver(name))
        raw = self._call("contenthash", lambda: resolver.functions.contenthash(namehash(name)).call())
        return Web3.to_hex(raw) if raw else None

    def make_commitment(self, name: str, owner: str, duration: int, secret: bytes) -> bytes:
        label = name.split(".")[0]
        args = self._registration_args(label, owner, duration, secret)
        return self._call("makeCommitment", lambda: self._controller().functions.makeCommitment(*args).call())

    # ---------------------------
    # Writes
    # ---------------------------

    def _registration_args(self, label: str, owner: str, duration: int, secret: bytes) -> list[Any]:
        return [
            label,
            Web3.to_checksum_address(owner),
            duration,
            secret,
            Web3.to_checksum_address(self.addresses.public_resolver),
            [],
            False,
            0,
        ]

    def _send(self, contract, fn_name: str, args: list[Any], *, value: int = 0) -> str:
        data = contract.encode_abi(fn_name, args=args)
        return rpc.send_transaction(self.chain_id, {"to": contract.address, "data": data, "value": value})

    def commit(self, commitment: bytes) -> str:
        return self._send(self._controller(), "commit", [commitment])

    def register(self, name: str, owner: str, duration: int, secret: bytes) -> str:
        label = name.split(".")[0]
        base, premium = self.rent_price(name, duration)
        args = self._registration_args(label, owner, duration, secret)
        return self._send(self._controller(), "register", args, value=base + premium)

    def renew(self, name: str, duration: int) -> str:
        label = name.split(".")[0]
        base, premium = self.rent_price(name, duration)
        return self._send(self._controller(), "renew", [label, duration], value=base + premium)

    def set_text(self, name: str, key: str, value: str) -> str:
        resolver = self._resolver_contract(self._active_resolver(name))
        return self._send(resolver, "setText", [namehash(name), key, value])

    def set_addr(self, name: str, address: str, coin_type: int = ETH_COIN_TYPE) -> str:
        resolver_address = self._active_resolver(name)
        if coin_type == ETH_COIN_TYPE:
            resolver = self._resolver_contract(resolver_address)
            return self._send(resolver, "setAddr", [namehash(name), Web3.to_checksum_address(address)])
        multicoin = self._contract(resolver_address, MULTICOIN_RESOLVER_ABI)
        return self._send(multicoin, "setAddr", [namehash(name), coin_type, Web3.to_bytes(hexstr=address)])

    def set_resolver(self, name: str, resolver_address: str) -> str:
        return self._send(self._registry(), "setResolver", [namehash(name), Web3.to_checksum_address(resolver_address)])

    def set_owner(self, name: str, new_owner: str) -> str:
        return self._send(self._registry(), "setOwner", [namehash(name), Web3.to_checksum_address(new_owner)])
