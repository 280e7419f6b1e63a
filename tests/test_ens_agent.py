from __future__ import annotations

from unittest.mock import patch

from app.chat.extract import ONE_YEAR
from app.contracts.operations import ENSOperation
from app.services.ens_agent import ENSAgent, describe_operation
from chain.rpc import SignerNotConfiguredError, Web3RPCError

from tests.addresses import OTHER, OWNER, USER


def test_availability_is_stable(ens_manager):
    agent = ENSAgent(manager=ens_manager)
    first = agent.check_availability("alice.eth")
    second = agent.check_availability("alice.eth")
    assert first.available is True and second.available is True
    assert first.cost_eth == "0.01"


def test_unavailable_name_reports_owner(ens_manager):
    ens_manager.is_available.return_value = False
    ens_manager.owner.return_value = OWNER
    ens_manager.expiry.return_value = 1767225600
    result = ENSAgent(manager=ens_manager).check_availability("Vitalik.eth")
    assert result.name == "vitalik.eth"
    assert result.available is False
    assert result.owner == OWNER
    assert result.expires == 1767225600


def test_invalid_name_never_reaches_the_chain(ens_manager):
    agent = ENSAgent(manager=ens_manager)
    for call in (agent.check_availability, agent.resolve_name, agent.get_price, agent.get_name_info):
        result = call("not a name")
        assert result.success is False
        assert result.error.startswith("Invalid format")
    assert ens_manager.method_calls == []


def test_rpc_failure_is_a_result(ens_manager):
    ens_manager.is_available.side_effect = Web3RPCError("Unable to connect to RPC for chain_id=11155111")
    result = ENSAgent(manager=ens_manager).check_availability("alice.eth")
    assert result.success is False
    assert "Failed to check availability for alice.eth" in result.error


def test_price(ens_manager):
    ens_manager.rent_price.return_value = (2 * 10**16, 5 * 10**15)
    result = ENSAgent(manager=ens_manager).get_price("alice.eth", 2 * ONE_YEAR)
    assert (result.base, result.premium, result.total) == ("0.02", "0.005", "0.025")
    ens_manager.rent_price.assert_called_once_with("alice.eth", 2 * ONE_YEAR)


def test_name_info_without_resolver_skips_records(ens_manager):
    ens_manager.is_available.return_value = False
    ens_manager.owner.return_value = OWNER
    result = ENSAgent(manager=ens_manager).get_name_info("alice.eth")
    assert result.owner == OWNER
    assert result.resolver is None
    ens_manager.text.assert_not_called()


def test_name_info_collects_text_records(ens_manager):
    ens_manager.resolver.return_value = OTHER
    ens_manager.resolve.return_value = USER
    ens_manager.text.side_effect = lambda name, key: "@alice" if key == "com.twitter" else ""
    result = ENSAgent(manager=ens_manager).get_name_info("alice.eth")
    assert result.address == USER
    assert result.text_records == {"com.twitter": "@alice"}


def test_register_proposal_checks_availability(ens_manager):
    ens_manager.is_available.return_value = False
    op = ENSOperation(type="register", name="alice.eth", data={"owner": USER, "duration": ONE_YEAR})
    result = ENSAgent(manager=ens_manager).propose(op)
    assert result.error == "alice.eth is already registered. Please choose a different name."


def test_register_proposal_is_priced(ens_manager):
    op = ENSOperation(type="register", name="alice.eth", data={"owner": USER, "duration": ONE_YEAR})
    result = ENSAgent(manager=ens_manager).propose(op)
    assert result.kind == "ens_operation_proposal"
    assert result.cost_eth == "0.01"
    assert result.operation.value == "0.01"
    ens_manager.commit.assert_not_called()


def test_register_needs_owner(ens_manager):
    op = ENSOperation(type="register", name="alice.eth", data={"duration": ONE_YEAR})
    result = ENSAgent(manager=ens_manager).propose(op)
    assert result.error == "Please connect your wallet to register ENS names"


def test_register_minimum_duration(ens_manager):
    op = ENSOperation(type="register", name="alice.eth", data={"owner": USER, "duration": 86400})
    result = ENSAgent(manager=ens_manager).propose(op)
    assert result.error == "Registration duration must be at least 28 days"


def test_transfer_needs_address(ens_manager):
    op = ENSOperation(type="transfer", name="alice.eth", data={})
    result = ENSAgent(manager=ens_manager).propose(op)
    assert "valid Ethereum address" in result.error


def test_commit_returns_reveal_data(ens_manager):
    op = ENSOperation(type="commit", name="alice.eth", data={"owner": USER, "duration": ONE_YEAR})
    with patch("app.services.ens_agent.time.time", return_value=1_700_000_000):
        result = ENSAgent(manager=ens_manager).execute_operation(op)
    assert result.kind == "ens_commit"
    assert result.ready_at == 1_700_000_060
    assert result.wait_seconds == 60
    assert result.secret.startswith("0x") and len(result.secret) == 66
    ens_manager.commit.assert_called_once_with(b"\x01" * 32)


def test_commit_without_signer(ens_manager):
    ens_manager.commit.side_effect = SignerNotConfiguredError("No signer private key configured")
    op = ENSOperation(type="commit", name="alice.eth", data={"owner": USER, "duration": ONE_YEAR})
    result = ENSAgent(manager=ens_manager).execute_operation(op)
    assert result.success is False
    assert result.error == "Signer required for registration"


def test_reveal_waits_for_commitment_age(ens_manager):
    data = {"owner": USER, "duration": ONE_YEAR, "secret": "0x" + "01" * 32, "ready_at": 1_700_000_060}
    op = ENSOperation(type="reveal", name="alice.eth", data=data)
    with patch("app.services.ens_agent.time.time", return_value=1_700_000_000):
        result = ENSAgent(manager=ens_manager).execute_operation(op)
    assert result.success is False
    assert "not ready yet" in result.error
    assert "60 more seconds" in result.error
    ens_manager.register.assert_not_called()


def test_reveal_registers(ens_manager):
    data = {"owner": USER, "duration": ONE_YEAR, "secret": "0x" + "01" * 32, "ready_at": 1_700_000_060}
    op = ENSOperation(type="reveal", name="alice.eth", data=data)
    with patch("app.services.ens_agent.time.time", return_value=1_700_000_100):
        result = ENSAgent(manager=ens_manager).execute_operation(op)
    assert result.kind == "ens_operation"
    assert result.message.startswith("Successfully registered alice.eth")
    ens_manager.register.assert_called_once_with("alice.eth", USER, ONE_YEAR, b"\x01" * 32)


def test_set_text_record(ens_manager):
    op = ENSOperation(
        type="setRecord",
        name="alice.eth",
        data={"record_type": "text", "key": "com.twitter", "value": "@alice"},
    )
    result = ENSAgent(manager=ens_manager).execute_operation(op)
    assert result.tx_hash == "0x" + "cd" * 32
    ens_manager.set_text.assert_called_once_with("alice.eth", "com.twitter", "@alice")


def test_write_without_signer(ens_manager):
    ens_manager.renew.side_effect = SignerNotConfiguredError("No signer private key configured")
    op = ENSOperation(type="renew", name="alice.eth", data={"duration": ONE_YEAR})
    result = ENSAgent(manager=ens_manager).execute_operation(op)
    assert result.error == "Signer required for renewal"


def test_describe_operation():
    op = ENSOperation(type="register", name="alice.eth", data={"duration": 2 * ONE_YEAR})
    assert describe_operation(op) == "Registering ENS name alice.eth for 2 year(s)"
    op = ENSOperation(type="transfer", name="alice.eth", data={"new_owner": OTHER})
    assert describe_operation(op) == f"Transferring ENS name alice.eth to {OTHER}"
