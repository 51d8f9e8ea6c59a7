import pytest

from starknodekit.clienttypes import (
    ClientType,
    UnsupportedClientError,
    get_consensus_client,
    get_execution_client,
    get_starknet_client,
)


@pytest.mark.parametrize(
    "name, expected",
    [("geth", ClientType.GETH), ("reth", ClientType.RETH)],
)
def test_execution_clients(name, expected):
    assert get_execution_client(name) is expected


@pytest.mark.parametrize(
    "name, expected",
    [("lighthouse", ClientType.LIGHTHOUSE), ("prysm", ClientType.PRYSM)],
)
def test_consensus_clients(name, expected):
    assert get_consensus_client(name) is expected


def test_starknet_client():
    assert get_starknet_client("juno") is ClientType.JUNO


@pytest.mark.parametrize("name", ["prysm", "juno", "unknown", ""])
def test_execution_rejects_other_names(name):
    with pytest.raises(UnsupportedClientError) as info:
        get_execution_client(name)
    assert info.value.name == name
    assert info.value.supported == (ClientType.GETH, ClientType.RETH)


@pytest.mark.parametrize("name", ["geth", "juno", "nimbus"])
def test_consensus_rejects_other_names(name):
    with pytest.raises(UnsupportedClientError) as info:
        get_consensus_client(name)
    assert "prysm" in str(info.value)
    assert "lighthouse" in str(info.value)


def test_starknet_rejects_other_names():
    with pytest.raises(UnsupportedClientError) as info:
        get_starknet_client("geth")
    assert info.value.supported == (ClientType.JUNO,)


def test_error_is_value_error():
    with pytest.raises(ValueError):
        get_starknet_client("reth")


def test_str_is_value():
    for client in ClientType:
        assert str(client) == client.value
        assert ClientType(client.value) is client