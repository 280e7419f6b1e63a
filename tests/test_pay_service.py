from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.config import get_settings
from chain.pay import BasePayService

from tests.addresses import OTHER

TEST_KEY = "0x" + "11" * 32
RELAYED = "0x" + "12" * 32
BROADCAST = "0x" + "34" * 32


def _service():
    return BasePayService(chain_id=84532, settings=get_settings())


@pytest.fixture
def signer(monkeypatch):
    monkeypatch.setenv("SIGNER_PRIVATE_KEY", TEST_KEY)
    get_settings.cache_clear()


@pytest.fixture
def gasless(monkeypatch, signer):
    monkeypatch.setenv("GASLESS_ENABLED", "true")
    monkeypatch.setenv("PAYMASTER_URL", "https://paymaster.example/rpc")
    get_settings.cache_clear()


def test_eth_transfer_without_signer_is_unsigned():
    sent = _service().send(to=OTHER, amount=Decimal("0.1"), token="ETH")
    assert sent["tx_hash"] is None
    assert sent["mode"] == "unsigned"
    assert sent["tx"]["value"] == 10**17
    assert sent["tx"]["chainId"] == 84532


def test_unsupported_token():
    with pytest.raises(ValueError):
        _service().build_transfer(to=OTHER, amount=Decimal("1"), token="DAI")


def test_standard_send(signer):
    with patch("chain.pay.rpc.send_transaction", return_value=BROADCAST) as send:
        sent = _service().send(to=OTHER, amount=Decimal("0.1"), token="ETH")
    assert sent == {"tx_hash": BROADCAST, "mode": "standard", "tx": sent["tx"]}
    tx = send.call_args.args[1]
    assert tx["gas"] == 21000
    assert "data" not in tx and "chainId" not in tx


def test_gasless_relay(gasless):
    response = MagicMock()
    response.json.return_value = {"jsonrpc": "2.0", "id": 1, "result": RELAYED}
    with patch("chain.pay.requests.post", return_value=response) as post, patch(
        "chain.pay.rpc.send_transaction"
    ) as send:
        sent = _service().send(to=OTHER, amount=Decimal("0.1"), token="ETH")
    assert sent["tx_hash"] == RELAYED
    assert sent["mode"] == "gasless"
    body = post.call_args.kwargs["json"]
    assert body["method"] == "pm_sponsorTransaction"
    assert body["params"][0]["value"] == hex(10**17)
    send.assert_not_called()


def test_gasless_failure_falls_back(gasless):
    with patch("chain.pay.requests.post", side_effect=requests.ConnectionError("down")), patch(
        "chain.pay.rpc.send_transaction", return_value=BROADCAST
    ):
        sent = _service().send(to=OTHER, amount=Decimal("0.1"), token="ETH")
    assert sent["tx_hash"] == BROADCAST
    assert sent["mode"] == "standard"


def test_paymaster_error_falls_back(gasless):
    response = MagicMock()
    response.json.return_value = {"error": {"code": -32000, "message": "not sponsored"}}
    with patch("chain.pay.requests.post", return_value=response), patch(
        "chain.pay.rpc.send_transaction", return_value=BROADCAST
    ):
        sent = _service().send(to=OTHER, amount=Decimal("0.1"), token="ETH")
    assert sent["mode"] == "standard"


def test_balances():
    with patch("chain.pay.rpc.get_native_balance", return_value=5 * 10**17), patch(
        "chain.pay.rpc.erc20_balance", return_value=2_500_000
    ), patch("chain.pay.rpc.erc20_decimals", return_value=6):
        balances = _service().get_balances(OTHER)
    assert balances == {"ETH": Decimal("0.5"), "USDC": Decimal("2.5")}


@pytest.mark.parametrize(
    "receipt,exists,status",
    [
        ({"status": 1}, True, "confirmed"),
        ({"status": 0}, True, "failed"),
        (None, True, "pending"),
        (None, False, "not_found"),
    ],
)
def test_transaction_status(receipt, exists, status):
    with patch("chain.pay.rpc.get_transaction_receipt", return_value=receipt), patch(
        "chain.pay.rpc.transaction_exists", return_value=exists
    ):
        assert _service().get_transaction_status("0x" + "ab" * 32) == status
