from __future__ import annotations

from app.chat.extract import (
    MIN_REGISTRATION_DURATION,
    ONE_YEAR,
    extract_address,
    extract_amount_and_token,
    extract_amounts_and_tokens,
    extract_duration,
    extract_ens_name,
    extract_record,
    extract_tx_hash,
    invalid_name_error,
    is_confirmation,
    is_rejection,
    is_valid_ens_name,
    registration_name_error,
    short_address,
)

ADDR = "0x742d35Cc6634C0532925a3b8D5C0B4F3e8dCdD98"
TX = "0x" + "ab" * 32


def test_amount_and_token_case_insensitive():
    assert extract_amount_and_token("Send 0.1 ETH to alex.eth") == ("0.1", "ETH")
    assert extract_amount_and_token("pay 10 usdc to bob") == ("10", "USDC")
    assert extract_amount_and_token("send 5usdc") == ("5", "USDC")


def test_amount_ignores_digits_inside_ens_names():
    assert extract_amount_and_token("what about alice2.eth") is None
    assert extract_amounts_and_tokens("batch 0.1 ETH to a1.eth and 0.2 ETH to b.eth") == [
        ("0.1", "ETH"),
        ("0.2", "ETH"),
    ]


def test_address_and_tx_hash_do_not_overlap():
    assert extract_address(f"send to {ADDR} now") == ADDR
    assert extract_address(f"status of {TX}") is None
    assert extract_tx_hash(f"status of {TX}") == TX
    assert extract_tx_hash(f"send to {ADDR}") is None


def test_ens_name_lowercased():
    assert extract_ens_name("Is Alice.ETH available?") == "alice.eth"
    assert extract_ens_name("check my-site.test please") == "my-site.test"
    assert extract_ens_name("no names here") is None


def test_duration_units():
    assert extract_duration("register for 2 years") == 2 * ONE_YEAR
    assert extract_duration("renew for 6 months") == 6 * 30 * 86400
    assert extract_duration("for 28 days") == MIN_REGISTRATION_DURATION
    assert extract_duration("register alice.eth") is None


def test_record_set_to_form():
    record = extract_record("Set twitter for alice.eth to @alice")
    assert record == {"record_type": "text", "key": "com.twitter", "value": "@alice"}


def test_record_key_value_form():
    record = extract_record("update alice.eth email: alice@example.com")
    assert record == {"record_type": "text", "key": "email", "value": "alice@example.com"}


def test_record_address_form():
    record = extract_record(f"set address for alice.eth to {ADDR}")
    assert record == {"record_type": "address", "key": "addr", "value": ADDR, "coin_type": 60}


def test_ens_name_validation():
    assert is_valid_ens_name("alice.eth")
    assert is_valid_ens_name("my-name.test")
    assert not is_valid_ens_name("alice")
    assert not is_valid_ens_name("alice.com")
    assert not is_valid_ens_name("al ice.eth")
    assert invalid_name_error("alice").startswith("Invalid format")


def test_registration_rules():
    assert registration_name_error("alice.eth") is None
    assert registration_name_error("ab.eth") == "ENS names must be at least 3 characters long"
    assert registration_name_error("a" * 51 + ".eth") == "ENS names must be at most 50 characters long"
    assert registration_name_error("-alice.eth") is not None
    assert registration_name_error("alice.test") == "Only .eth names can be registered"
    assert registration_name_error("alice").startswith("Invalid format")


def test_confirmation_and_rejection_phrases():
    assert is_confirmation("yes")
    assert is_confirmation("Go ahead please")
    assert not is_confirmation("send 1 eth")
    assert is_rejection("no, cancel that")
    assert not is_rejection("yes")


def test_short_address():
    assert short_address(ADDR) == "0x742d...dD98"
    assert short_address("0x1234") == "0x1234"
    assert short_address(None) == ""
