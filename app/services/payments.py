from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Iterable

from web3 import Web3

from app.chat.extract import (
    extract_address,
    extract_addresses,
    extract_amount_and_token,
    extract_amounts_and_tokens,
    extract_ens_name,
    extract_ens_names,
    short_address,
)
from app.config import Settings
from app.contracts.operations import PaymentRequest
from app.contracts.results import (
    BalanceResult,
    BatchPaymentProposal,
    BatchPaymentResult,
    ErrorResult,
    PaymentProposal,
    PaymentResult,
    TxStatusResult,
)
from chain.chains import UnsupportedChainError, explorer_tx_url
from chain.ens import ENSContractManager
from chain.pay import BasePayService
from chain.rpc import SignerNotConfiguredError, Web3RPCError

logger = logging.getLogger(__name__)

PAYMENT_DETAILS_HINT = (
    "Please provide payment details like: 'Send 0.1 ETH to alex.eth' "
    "or 'Send 10 USDC to 0x742d35Cc...'"
)
NO_WALLET_ERROR = "No address provided and no connected wallet"

_BATCH_SPLIT_RE = re.compile(r",|;|\band\b", re.IGNORECASE)


class PaymentValidationError(ValueError):
    pass


def validate_payment_request(
    req: PaymentRequest,
    *,
    min_amount: Decimal,
    max_amount: Decimal,
    allowed_tokens: Iterable[str],
) -> PaymentRequest:
    """
    Check a request before any network call. Returns a normalized copy.
    """
    if not req.to:
        raise PaymentValidationError("Recipient address is required")
    if not Web3.is_address(req.to):
        raise PaymentValidationError("Invalid recipient address format")
    if not req.amount:
        raise PaymentValidationError("Amount is required")
    try:
        amount = Decimal(req.amount)
    except InvalidOperation:
        raise PaymentValidationError("Amount must be a positive number")
    if not amount.is_finite() or amount <= 0:
        raise PaymentValidationError("Amount must be a positive number")

    token = (req.token or "").upper()
    if amount < min_amount:
        raise PaymentValidationError(f"Amount must be at least {min_amount} {token}")
    if amount > max_amount:
        raise PaymentValidationError(f"Amount cannot exceed {max_amount} {token}")
    if token not in set(allowed_tokens):
        raise PaymentValidationError("Token must be ETH or USDC")

    return req.model_copy(update={"to": Web3.to_checksum_address(req.to), "token": token})


def friendly_error(error: Exception | str) -> str:
    text = str(error)
    lowered = text.lower()
    if "insufficient funds" in lowered:
        return "Insufficient funds to complete this transaction."
    if "user rejected" in lowered or "user denied" in lowered:
        return "Transaction was rejected."
    if "unable to connect" in lowered or "network" in lowered or "timed out" in lowered:
        return "Network error. Please check your connection and try again."
    return text


def _format_amount(value: Decimal) -> str:
    return f"{value:.4f}"


class PaymentAgent:
    """
    Balance, transfer and status operations on the payment network.
    """

    def __init__(self, *, pay: BasePayService, ens: ENSContractManager, settings: Settings) -> None:
        self.pay = pay
        self.ens = ens
        self.min_amount = Decimal(settings.payment_min_amount)
        self.max_amount = Decimal(settings.payment_max_amount)
        self.allowed_tokens = settings.ALLOWED_TOKENS

    @property
    def network_name(self) -> str:
        return self.pay.network.name

    def validate(self, req: PaymentRequest) -> PaymentRequest:
        return validate_payment_request(
            req,
            min_amount=self.min_amount,
            max_amount=self.max_amount,
            allowed_tokens=self.allowed_tokens,
        )

    def get_balance(self, address: str | None) -> BalanceResult | ErrorResult:
        if not address:
            return ErrorResult(error=NO_WALLET_ERROR)
        if not Web3.is_address(address):
            return ErrorResult(error="Invalid address format")
        try:
            balances = self.pay.get_balances(address)
        except (Web3RPCError, UnsupportedChainError) as e:
            logger.warning("balance lookup failed address=%s err=%s", address, e)
            return ErrorResult(error=f"Failed to get balance: {friendly_error(e)}")
        return BalanceResult(
            address=address,
            network=self.network_name,
            balances={symbol: _format_amount(amount) for symbol, amount in balances.items() if amount > 0},
        )

    def resolve_recipient(self, ens_name: str) -> str | None:
        try:
            return self.ens.resolve(ens_name)
        except Web3RPCError as e:
            logger.info("ENS resolution failed name=%s err=%s", ens_name, e)
            return None

    def build_request(self, message: str) -> PaymentRequest | ErrorResult:
        """
        Amount, token and recipient out of free text. ENS recipients are
        resolved here; an unresolvable name is an error, never a fallback
        to address parsing.
        """
        amount_token = extract_amount_and_token(message)
        ens_name = extract_ens_name(message)
        recipient: str | None = None

        if ens_name:
            recipient = self.resolve_recipient(ens_name)
            if not recipient:
                return ErrorResult(
                    error=f'Could not resolve ENS name "{ens_name}". Please check the name and try again.'
                )
        else:
            recipient = extract_address(message)

        if not amount_token or not recipient:
            return ErrorResult(error=PAYMENT_DETAILS_HINT)

        amount, token = amount_token
        return PaymentRequest(to=recipient, amount=amount, token=token, ens_name=ens_name)

    def propose_payment(self, message: str) -> PaymentProposal | ErrorResult:
        built = self.build_request(message)
        if isinstance(built, ErrorResult):
            return built
        try:
            req = self.validate(built)
        except PaymentValidationError as e:
            return ErrorResult(error=str(e))
        display = req.ens_name or short_address(req.to)
        return PaymentProposal(request=req, recipient_display=display, network=self.network_name)

    def propose_batch(self, message: str) -> BatchPaymentProposal | ErrorResult:
        """
        "batch 0.1 ETH to a.eth and 0.2 ETH to 0x..." pays each segment;
        "split 0.3 ETH between a.eth, b.eth and 0x..." divides one amount evenly.
        """
        amounts = extract_amounts_and_tokens(message)
        recipients = extract_ens_names(message) + extract_addresses(message)
        if not amounts or not recipients:
            return ErrorResult(error=PAYMENT_DETAILS_HINT)

        requests: list[PaymentRequest] = []
        if len(amounts) == 1 and len(recipients) > 1:
            amount, token = amounts[0]
            share = (Decimal(amount) / len(recipients)).quantize(Decimal("0.000001"))
            for target in recipients:
                built = self._request_for(target, format(share.normalize(), "f"), token)
                if isinstance(built, ErrorResult):
                    return built
                requests.append(built)
        else:
            for segment in _BATCH_SPLIT_RE.split(message):
                if not extract_amount_and_token(segment):
                    continue
                built = self.build_request(segment)
                if isinstance(built, ErrorResult):
                    return built
                requests.append(built)

        if len(requests) < 2:
            return ErrorResult(error="A batch payment needs at least two recipients")
        try:
            validated = [self.validate(req) for req in requests]
        except PaymentValidationError as e:
            return ErrorResult(error=str(e))
        return BatchPaymentProposal(requests=validated, network=self.network_name)

    def _request_for(self, target: str, amount: str, token: str) -> PaymentRequest | ErrorResult:
        if Web3.is_address(target):
            return PaymentRequest(to=target, amount=amount, token=token)
        address = self.resolve_recipient(target)
        if not address:
            return ErrorResult(
                error=f'Could not resolve ENS name "{target}". Please check the name and try again.'
            )
        return PaymentRequest(to=address, amount=amount, token=token, ens_name=target)

    def send_payment(self, req: PaymentRequest) -> PaymentResult | ErrorResult:
        try:
            req = self.validate(req)
        except PaymentValidationError as e:
            return ErrorResult(error=str(e))

        logger.info("payment dispatch to=%s amount=%s token=%s", req.to, req.amount, req.token)
        try:
            sent = self.pay.send(to=req.to, amount=Decimal(req.amount), token=req.token)
        except (Web3RPCError, SignerNotConfiguredError, ValueError) as e:
            logger.warning("payment failed to=%s err=%s", req.to, e)
            return PaymentResult(
                success=False,
                error=friendly_error(e),
                request=req,
                status="failed",
                network=self.network_name,
            )

        tx_hash = sent.get("tx_hash")
        if tx_hash is None:
            return PaymentResult(
                request=req,
                status="awaiting_signature",
                mode="unsigned",
                unsigned_tx=sent.get("tx"),
                network=self.network_name,
            )
        return PaymentResult(
            request=req,
            status="submitted",
            mode=sent.get("mode"),
            tx_hash=tx_hash,
            explorer_url=explorer_tx_url(self.pay.chain_id, tx_hash),
            network=self.network_name,
        )

    def send_batch(self, requests: list[PaymentRequest]) -> BatchPaymentResult:
        results: list[PaymentResult] = []
        for req in requests:
            sent = self.send_payment(req)
            if isinstance(sent, ErrorResult):
                sent = PaymentResult(success=False, error=sent.error, request=req, status="failed")
            results.append(sent)
        failed = sum(1 for r in results if not r.success)
        return BatchPaymentResult(
            success=failed == 0,
            error=None if failed == 0 else f"{failed} of {len(results)} payments failed",
            results=results,
            succeeded=len(results) - failed,
            failed=failed,
        )

    def get_transaction_status(self, tx_hash: str) -> TxStatusResult | ErrorResult:
        try:
            status = self.pay.get_transaction_status(tx_hash)
        except Web3RPCError as e:
            return ErrorResult(error=f"Failed to get transaction status: {friendly_error(e)}")
        return TxStatusResult(
            tx_hash=tx_hash,
            status=status,
            explorer_url=explorer_tx_url(self.pay.chain_id, tx_hash) if status != "not_found" else None,
        )
