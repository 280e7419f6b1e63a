from __future__ import annotations

from decimal import Decimal

from app.config import get_settings
from app.contracts.operations import PaymentRequest
from app.services.payments import NO_WALLET_ERROR, PAYMENT_DETAILS_HINT, PaymentAgent
from chain.rpc import SignerNotConfiguredError, Web3RPCError

from tests.addresses import OTHER, USER


def _agent(pay_service, ens_manager):
    return PaymentAgent(pay=pay_service, ens=ens_manager, settings=get_settings())


def test_balance_without_address(pay_service, ens_manager):
    result = _agent(pay_service, ens_manager).get_balance(None)
    assert result.success is False
    assert result.error == NO_WALLET_ERROR
    pay_service.get_balances.assert_not_called()


def test_balance_omits_zero_tokens(pay_service, ens_manager):
    pay_service.get_balances.return_value = {"ETH": Decimal("0.12345"), "USDC": Decimal("0")}
    result = _agent(pay_service, ens_manager).get_balance(USER)
    assert result.success is True
    assert result.balances == {"ETH": "0.1235"}
    assert result.network == "Base Sepolia"


def test_balance_rpc_failure_is_a_result(pay_service, ens_manager):
    pay_service.get_balances.side_effect = Web3RPCError("RPC not connected for chain_id=84532")
    result = _agent(pay_service, ens_manager).get_balance(USER)
    assert result.success is False
    assert result.error.startswith("Failed to get balance")


def test_build_request_from_address(pay_service, ens_manager):
    req = _agent(pay_service, ens_manager).build_request(f"Send 0.1 eth to {OTHER}")
    assert isinstance(req, PaymentRequest)
    assert (req.to, req.amount, req.token) == (OTHER, "0.1", "ETH")


def test_build_request_resolves_ens(pay_service, ens_manager):
    ens_manager.resolve.return_value = OTHER
    req = _agent(pay_service, ens_manager).build_request("Send 10 USDC to bob.eth")
    assert req.to == OTHER
    assert req.ens_name == "bob.eth"
    ens_manager.resolve.assert_called_once_with("bob.eth")


def test_unresolvable_ens_does_not_fall_back_to_address(pay_service, ens_manager):
    ens_manager.resolve.return_value = None
    result = _agent(pay_service, ens_manager).build_request(f"Send 1 ETH to nobody.eth {OTHER}")
    assert result.success is False
    assert result.error == 'Could not resolve ENS name "nobody.eth". Please check the name and try again.'


def test_missing_details_hint(pay_service, ens_manager):
    result = _agent(pay_service, ens_manager).build_request("send some money")
    assert result.error == PAYMENT_DETAILS_HINT


def test_send_payment_submitted(pay_service, ens_manager):
    result = _agent(pay_service, ens_manager).send_payment(PaymentRequest(to=OTHER, amount="0.1", token="ETH"))
    assert result.status == "submitted"
    assert result.tx_hash == "0x" + "ab" * 32
    assert result.explorer_url.startswith("https://sepolia.basescan.org/tx/")
    pay_service.send.assert_called_once_with(to=OTHER, amount=Decimal("0.1"), token="ETH")


def test_send_payment_unsigned(pay_service, ens_manager):
    pay_service.send.return_value = {"tx_hash": None, "mode": "unsigned", "tx": {"to": OTHER, "value": 1}}
    result = _agent(pay_service, ens_manager).send_payment(PaymentRequest(to=OTHER, amount="0.1", token="ETH"))
    assert result.status == "awaiting_signature"
    assert result.unsigned_tx == {"to": OTHER, "value": 1}


def test_send_payment_failure_is_friendly(pay_service, ens_manager):
    pay_service.send.side_effect = Web3RPCError("send_transaction failed: insufficient funds for transfer")
    result = _agent(pay_service, ens_manager).send_payment(PaymentRequest(to=OTHER, amount="0.1", token="ETH"))
    assert result.success is False
    assert result.status == "failed"
    assert result.error == "Insufficient funds to complete this transaction."


def test_send_payment_signer_error(pay_service, ens_manager):
    pay_service.send.side_effect = SignerNotConfiguredError("No signer private key configured")
    result = _agent(pay_service, ens_manager).send_payment(PaymentRequest(to=OTHER, amount="0.1", token="ETH"))
    assert result.success is False


def test_batch_split_evenly(pay_service, ens_manager):
    ens_manager.resolve.side_effect = lambda name: {"alice.eth": USER, "bob.eth": OTHER}[name]
    proposal = _agent(pay_service, ens_manager).propose_batch("split 0.3 ETH between alice.eth and bob.eth")
    assert proposal.kind == "batch_payment_proposal"
    assert [(r.to, r.amount) for r in proposal.requests] == [(USER, "0.15"), (OTHER, "0.15")]


def test_batch_per_segment(pay_service, ens_manager):
    proposal = _agent(pay_service, ens_manager).propose_batch(
        f"batch 0.1 ETH to {USER} and 2 USDC to {OTHER}"
    )
    assert [(r.to, r.amount, r.token) for r in proposal.requests] == [
        (USER, "0.1", "ETH"),
        (OTHER, "2", "USDC"),
    ]


def test_batch_counts_failures(pay_service, ens_manager):
    pay_service.send.side_effect = [
        {"tx_hash": "0x" + "01" * 32, "mode": "standard", "tx": {}},
        Web3RPCError("reverted"),
    ]
    result = _agent(pay_service, ens_manager).send_batch(
        [
            PaymentRequest(to=USER, amount="0.1", token="ETH"),
            PaymentRequest(to=OTHER, amount="0.1", token="ETH"),
        ]
    )
    assert result.succeeded == 1
    assert result.failed == 1
    assert result.success is False


def test_transaction_status(pay_service, ens_manager):
    pay_service.get_transaction_status.return_value = "not_found"
    result = _agent(pay_service, ens_manager).get_transaction_status("0x" + "cd" * 32)
    assert result.status == "not_found"
    assert result.explorer_url is None
