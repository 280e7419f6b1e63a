from __future__ import annotations

from decimal import Decimal

import pytest
from web3 import Web3

from app.contracts.operations import PaymentRequest
from app.services.payments import PaymentValidationError, friendly_error, validate_payment_request

ADDR = "0x742d35cc6634c0532925a3b8d5c0b4f3e8dcdd98"


def _validate(**fields):
    return validate_payment_request(
        PaymentRequest(**fields),
        min_amount=Decimal("0.001"),
        max_amount=Decimal("10"),
        allowed_tokens=["ETH", "USDC"],
    )


def test_valid_request_is_normalized():
    req = _validate(to=ADDR, amount="0.5", token="usdc")
    assert Web3.is_checksum_address(req.to)
    assert req.to.lower() == ADDR
    assert req.token == "USDC"
    assert req.amount == "0.5"


@pytest.mark.parametrize(
    "fields,error",
    [
        ({"amount": "1"}, "Recipient address is required"),
        ({"to": "0x123", "amount": "1"}, "Invalid recipient address format"),
        ({"to": ADDR}, "Amount is required"),
        ({"to": ADDR, "amount": "abc"}, "Amount must be a positive number"),
        ({"to": ADDR, "amount": "-1"}, "Amount must be a positive number"),
        ({"to": ADDR, "amount": "0"}, "Amount must be a positive number"),
        ({"to": ADDR, "amount": "0.0001"}, "Amount must be at least 0.001 ETH"),
        ({"to": ADDR, "amount": "11"}, "Amount cannot exceed 10 ETH"),
        ({"to": ADDR, "amount": "1", "token": "DAI"}, "Token must be ETH or USDC"),
    ],
)
def test_invalid_requests(fields, error):
    with pytest.raises(PaymentValidationError) as exc:
        _validate(**fields)
    assert str(exc.value) == error


def test_friendly_errors():
    assert friendly_error("insufficient funds for gas * price + value") == "Insufficient funds to complete this transaction."
    assert friendly_error(RuntimeError("User rejected the request")) == "Transaction was rejected."
    assert friendly_error("network unreachable") == "Network error. Please check your connection and try again."
    assert friendly_error("execution reverted") == "execution reverted"
