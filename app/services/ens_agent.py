from __future__ import annotations

import logging
import secrets
import time
from decimal import Decimal
from typing import Any

from web3 import Web3

from app.chat.extract import (
    MIN_REGISTRATION_DURATION,
    ONE_YEAR,
    invalid_name_error,
    is_valid_ens_name,
    registration_name_error,
)
from app.contracts.operations import ENSOperation
from app.contracts.results import (
    ENSAvailabilityResult,
    ENSCommitResult,
    ENSOperationProposal,
    ENSOperationResult,
    ENSPriceResult,
    ENSRecordResult,
    ENSResolutionResult,
    ENSReverseResult,
    ErrorResult,
)
from app.services.payments import friendly_error
from chain.ens import ETH_COIN_TYPE, ENSContractManager
from chain.rpc import SignerNotConfiguredError, Web3RPCError

logger = logging.getLogger(__name__)

OPERATION_DESCRIPTIONS = {
    "register": "Registering ENS name",
    "renew": "Renewing ENS name",
    "setResolver": "Setting resolver",
    "setRecord": "Setting ENS record",
    "transfer": "Transferring ENS name",
    "resolve": "Resolving ENS name",
    "commit": "Committing ENS registration",
    "reveal": "Completing ENS registration",
}

# text records read for the name details view
DETAIL_TEXT_KEYS = (
    "description",
    "url",
    "email",
    "avatar",
    "notice",
    "keywords",
    "location",
    "com.twitter",
    "com.github",
    "com.discord",
    "org.telegram",
    "com.linkedin",
)


def wei_to_eth(wei: int) -> str:
    value = Web3.from_wei(wei, "ether")
    return format(Decimal(value).normalize(), "f")


def describe_operation(op: ENSOperation) -> str:
    base = OPERATION_DESCRIPTIONS.get(op.type, "ENS operation")
    data = op.data
    if op.type == "transfer" and data.get("new_owner"):
        return f"{base} {op.name} to {data['new_owner']}"
    if op.type == "setRecord" and data.get("key"):
        return f"{base} {data['key']} on {op.name} to {data.get('value')}"
    if op.type in ("register", "renew", "commit") and data.get("duration"):
        years = max(int(data["duration"]) // ONE_YEAR, 0)
        span = f"{years} year(s)" if years else f"{int(data['duration']) // 86400} day(s)"
        return f"{base} {op.name} for {span}"
    if op.type == "setResolver" and data.get("resolver"):
        return f"{base} for {op.name} to {data['resolver']}"
    return f"{base} {op.name}"


class ENSAgent:
    """
    ENS reads and writes as tagged results.

    Name format is checked before any network call; chain failures come back
    as success=False results, never as exceptions.
    """

    def __init__(self, *, manager: ENSContractManager) -> None:
        self.manager = manager

    # ---------------------------
    # Reads
    # ---------------------------

    def check_availability(self, name: str) -> ENSAvailabilityResult | ErrorResult:
        if not is_valid_ens_name(name):
            return ErrorResult(error=invalid_name_error(name))
        name = name.lower()
        try:
            available = self.manager.is_available(name)
            if available:
                cost = None
                try:
                    base, premium = self.manager.rent_price(name, ONE_YEAR)
                    cost = wei_to_eth(base + premium)
                except Web3RPCError as e:
                    logger.info("rent price unavailable name=%s err=%s", name, e)
                return ENSAvailabilityResult(name=name, available=True, cost_eth=cost)

            owner = self.manager.owner(name)
            expires = self.manager.expiry(name)
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to check availability for {name}: {friendly_error(e)}")
        return ENSAvailabilityResult(name=name, available=False, owner=owner, expires=expires)

    def get_price(self, name: str, duration: int = ONE_YEAR) -> ENSPriceResult | ErrorResult:
        if not is_valid_ens_name(name):
            return ErrorResult(error=invalid_name_error(name))
        try:
            base, premium = self.manager.rent_price(name.lower(), duration)
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to get price: {friendly_error(e)}")
        return ENSPriceResult(
            name=name.lower(),
            duration=duration,
            base=wei_to_eth(base),
            premium=wei_to_eth(premium),
            total=wei_to_eth(base + premium),
        )

    def resolve_name(self, name: str) -> ENSResolutionResult | ErrorResult:
        if not is_valid_ens_name(name):
            return ErrorResult(error=invalid_name_error(name))
        try:
            address = self.manager.resolve(name.lower())
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to resolve name: {friendly_error(e)}")
        return ENSResolutionResult(name=name.lower(), address=address)

    def get_name_info(self, name: str) -> ENSResolutionResult | ErrorResult:
        """
        Owner, resolver, ETH address, common text records and expiry.
        """
        if not is_valid_ens_name(name):
            return ErrorResult(error=invalid_name_error(name))
        name = name.lower()
        try:
            owner = self.manager.owner(name)
            resolver = self.manager.resolver(name)
            available = self.manager.is_available(name) if name.endswith(".eth") else False
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to get ENS data for {name}: {friendly_error(e)}")

        info = ENSResolutionResult(
            name=name,
            available=available,
            owner=None if _is_zero(owner) else owner,
            resolver=None if _is_zero(resolver) else resolver,
        )
        if _is_zero(resolver):
            return self._attach_expiry(info)

        try:
            info.address = self.manager.resolve(name)
        except Web3RPCError as e:
            logger.info("addr lookup failed name=%s err=%s", name, e)
        for key in DETAIL_TEXT_KEYS:
            try:
                value = self.manager.text(name, key)
            except Web3RPCError:
                continue
            if value:
                info.text_records[key] = value
        try:
            info.contenthash = self.manager.contenthash(name)
        except Web3RPCError as e:
            logger.info("contenthash lookup failed name=%s err=%s", name, e)
        return self._attach_expiry(info)

    def _attach_expiry(self, info: ENSResolutionResult) -> ENSResolutionResult:
        try:
            info.expires = self.manager.expiry(info.name)
        except Web3RPCError as e:
            logger.info("expiry lookup failed name=%s err=%s", info.name, e)
        return info

    def resolve_address(self, address: str) -> ENSReverseResult | ErrorResult:
        if not Web3.is_address(address):
            return ErrorResult(error="Invalid address format")
        try:
            name = self.manager.reverse(address)
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to resolve address: {friendly_error(e)}")
        return ENSReverseResult(address=address, name=name)

    def get_text_record(self, name: str, key: str) -> ENSRecordResult | ErrorResult:
        if not is_valid_ens_name(name):
            return ErrorResult(error=invalid_name_error(name))
        try:
            value = self.manager.text(name.lower(), key)
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to get text record: {friendly_error(e)}")
        return ENSRecordResult(name=name.lower(), key=key, value=value or None)

    def get_address_record(self, name: str, coin_type: int = ETH_COIN_TYPE) -> ENSRecordResult | ErrorResult:
        if not is_valid_ens_name(name):
            return ErrorResult(error=invalid_name_error(name))
        try:
            value = self.manager.addr(name.lower(), coin_type)
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to get address record: {friendly_error(e)}")
        return ENSRecordResult(name=name.lower(), key=f"addr:{coin_type}", value=value)

    # ---------------------------
    # Proposals
    # ---------------------------

    def propose(self, op: ENSOperation) -> ENSOperationProposal | ErrorResult:
        """
        Validate an operation and price it, without touching state.
        """
        error = self._validate(op)
        if error:
            return ErrorResult(error=error)

        cost = None
        if op.type in ("register", "renew"):
            duration = int(op.data.get("duration") or ONE_YEAR)
            if op.type == "register":
                availability = self.check_availability(op.name)
                if isinstance(availability, ErrorResult):
                    return availability
                if not availability.available:
                    return ErrorResult(error=f"{op.name} is already registered. Please choose a different name.")
            price = self.get_price(op.name, duration)
            if isinstance(price, ErrorResult):
                return ErrorResult(error=f"Failed to calculate registration cost: {price.error}")
            cost = price.total
            op = op.model_copy(update={"value": price.total})
        return ENSOperationProposal(operation=op, description=describe_operation(op), cost_eth=cost)

    def _validate(self, op: ENSOperation) -> str | None:
        data = op.data
        if op.type in ("register", "commit"):
            error = registration_name_error(op.name)
            if error:
                return error
            owner = data.get("owner")
            if not owner:
                return "Please connect your wallet to register ENS names"
            if not Web3.is_address(owner):
                return "Invalid owner address format"
            if int(data.get("duration") or ONE_YEAR) < MIN_REGISTRATION_DURATION:
                return "Registration duration must be at least 28 days"
            return None

        if not is_valid_ens_name(op.name):
            return invalid_name_error(op.name)
        if op.type == "renew" and int(data.get("duration") or ONE_YEAR) <= 0:
            return "Renewal duration must be positive"
        if op.type == "transfer":
            new_owner = data.get("new_owner")
            if not new_owner or not Web3.is_address(new_owner):
                return f'Please provide a valid Ethereum address to transfer {op.name} to. For example: "Transfer {op.name} to 0x..."'
        if op.type == "setRecord":
            if not data.get("key") or not data.get("value"):
                return "Please specify the record and value, e.g. \"set twitter to @alice for alice.eth\""
            if data.get("record_type") == "address" and not Web3.is_address(data["value"]):
                return "Invalid address format"
        if op.type == "setResolver":
            resolver = data.get("resolver")
            if not resolver or not Web3.is_address(resolver):
                return "Invalid resolver address format"
        if op.type == "reveal":
            for key in ("owner", "secret", "duration"):
                if not data.get(key):
                    return "No pending commitment found. Start the registration again."
        return None

    # ---------------------------
    # Execution
    # ---------------------------

    def execute_operation(self, op: ENSOperation) -> Any:
        """
        Dispatch an ENSOperation to the matching read or write.
        """
        if op.type == "resolve":
            return self.get_name_info(op.name)

        error = self._validate(op)
        if error:
            return ErrorResult(error=error)

        if op.type in ("commit", "register"):
            return self.commit_registration(op)
        if op.type == "reveal":
            return self.complete_registration(op)
        if op.type == "renew":
            return self._write(op, lambda: self.manager.renew(op.name, int(op.data.get("duration") or ONE_YEAR)))
        if op.type == "setRecord":
            data = op.data
            if data.get("record_type") == "address":
                coin_type = int(data.get("coin_type") or ETH_COIN_TYPE)
                return self._write(op, lambda: self.manager.set_addr(op.name, data["value"], coin_type))
            return self._write(op, lambda: self.manager.set_text(op.name, data["key"], data["value"]))
        if op.type == "setResolver":
            return self._write(op, lambda: self.manager.set_resolver(op.name, op.data["resolver"]))
        if op.type == "transfer":
            return self._write(op, lambda: self.manager.set_owner(op.name, op.data["new_owner"]))
        raise ValueError(f"Unknown ENS operation type: {op.type}")

    def commit_registration(self, op: ENSOperation) -> ENSCommitResult | ErrorResult:
        """
        First half of commit/reveal: submit the commitment and report when
        the registration can be completed.
        """
        name = op.name.lower()
        owner = op.data["owner"]
        duration = int(op.data.get("duration") or ONE_YEAR)
        secret = secrets.token_bytes(32)
        try:
            commitment = self.manager.make_commitment(name, owner, duration, secret)
            tx_hash = self.manager.commit(commitment)
            wait_seconds = self.manager.min_commitment_age()
        except SignerNotConfiguredError:
            return ErrorResult(error="Signer required for registration")
        except Web3RPCError as e:
            return ErrorResult(error=f"Registration failed: {friendly_error(e)}. Please ensure you have sufficient ETH and try again.")

        logger.info("ENS commitment submitted name=%s tx=%s", name, tx_hash)
        return ENSCommitResult(
            name=name,
            owner=owner,
            duration=duration,
            commitment=Web3.to_hex(commitment),
            secret=Web3.to_hex(secret),
            tx_hash=tx_hash,
            ready_at=int(time.time()) + wait_seconds,
            wait_seconds=wait_seconds,
        )

    def complete_registration(self, op: ENSOperation) -> ENSOperationResult | ErrorResult:
        data = op.data
        ready_at = int(data.get("ready_at") or 0)
        remaining = ready_at - int(time.time())
        if remaining > 0:
            return ErrorResult(
                error=f"The commitment for {op.name} is not ready yet. Please wait {remaining} more seconds and try again."
            )
        secret = Web3.to_bytes(hexstr=data["secret"])
        return self._write(
            op,
            lambda: self.manager.register(op.name, data["owner"], int(data["duration"]), secret),
        )

    def _write(self, op: ENSOperation, fn) -> ENSOperationResult | ErrorResult:
        label = OPERATION_DESCRIPTIONS.get(op.type, op.type)
        try:
            tx_hash = fn()
        except SignerNotConfiguredError:
            return ErrorResult(error=f"Signer required for {_signer_label(op.type)}")
        except Web3RPCError as e:
            logger.warning("ENS %s failed name=%s err=%s", op.type, op.name, e)
            return ErrorResult(error=f"{label} failed: {friendly_error(e)}")
        logger.info("ENS %s done name=%s tx=%s", op.type, op.name, tx_hash)
        return ENSOperationResult(operation=op, tx_hash=tx_hash, message=_done_message(op))


def _signer_label(op_type: str) -> str:
    return {
        "reveal": "registration",
        "renew": "renewal",
        "setRecord": "setting records",
        "setResolver": "setting resolver",
        "transfer": "transfer",
    }.get(op_type, op_type)


def _done_message(op: ENSOperation) -> str:
    data = op.data
    if op.type == "reveal":
        return f"Successfully registered {op.name}! Your domain is now active on the blockchain."
    if op.type == "renew":
        return f"Renewed {op.name}."
    if op.type == "setRecord":
        return f"Set {data.get('key')} record for {op.name} to {data.get('value')}."
    if op.type == "setResolver":
        return f"Resolver for {op.name} set to {data.get('resolver')}."
    if op.type == "transfer":
        return f"Transferred {op.name} to {data.get('new_owner')}."
    return f"{op.type} completed for {op.name}."


def _is_zero(address: str | None) -> bool:
    return not address or int(address, 16) == 0
