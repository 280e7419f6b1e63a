import pytest
from web3 import Web3

from chain.ens import InvalidENSNameError, dns_encode, labelhash, namehash


def test_namehash_known_vectors():
    assert Web3.to_hex(namehash("eth")) == "0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"
    assert Web3.to_hex(namehash("foo.eth")) == "0xde9b09fd7c5f901e23a3f19fecc54828e9c848539801e86591bd9801b019f84f"


def test_labelhash_matches_keccak():
    assert labelhash("eth") == Web3.keccak(text="eth")


def test_dns_encode():
    assert dns_encode("alice.eth") == b"\x05alice\x03eth\x00"


@pytest.mark.parametrize("name", ["", "alice..eth", ".eth"])
def test_empty_labels_rejected(name):
    with pytest.raises(InvalidENSNameError):
        namehash(name)


def test_dns_encode_rejects_long_label():
    with pytest.raises(InvalidENSNameError):
        dns_encode("a" * 64 + ".eth")
