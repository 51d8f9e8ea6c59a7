import logging

import pytest

from starknodekit.clienttypes import ClientType
from starknodekit.config import (
    ClientConfig,
    ConfigError,
    JunoConfig,
    StarkNodeKitConfig,
    apply_config_update,
    parse_ports,
    process_config_args,
    set_client_config_value,
)


def test_parse_ports_trims_and_skips_empty():
    assert parse_ports(" 30303 , 9000,,") == [30303, 9000]


def test_parse_ports_empty_string():
    assert parse_ports("") == []


@pytest.mark.parametrize("value", ["abc", "30303,x", "1_000", "3.5"])
def test_parse_ports_rejects_non_integers(value):
    with pytest.raises(ConfigError):
        parse_ports(value)


def test_set_execution_client():
    updated = set_client_config_value(ClientConfig(), "client", "reth", "execution")
    assert updated.name is ClientType.RETH


def test_set_consensus_client():
    updated = set_client_config_value(ClientConfig(), "client", "prysm", "consensus")
    assert updated.name is ClientType.PRYSM


def test_set_execution_client_rejects_consensus_name():
    with pytest.raises(ConfigError) as info:
        set_client_config_value(ClientConfig(), "client", "lighthouse", "execution")
    message = str(info.value)
    assert "geth" in message and "reth" in message


def test_set_consensus_client_rejects_unknown():
    with pytest.raises(ConfigError) as info:
        set_client_config_value(ClientConfig(), "client", "geth", "consensus")
    assert "lighthouse" in str(info.value)


def test_set_value_does_not_mutate_original():
    original = ClientConfig(name=ClientType.GETH, port=[30303])
    updated = set_client_config_value(original, "port", "30304", "execution")
    assert updated.port == [30304]
    assert original.port == [30303]
    assert updated.name is ClientType.GETH


def test_set_type():
    updated = set_client_config_value(ClientConfig(), "type", "archive", "execution")
    assert updated.execution_type == "archive"


def test_unknown_key_raises():
    with pytest.raises(ConfigError) as info:
        set_client_config_value(ClientConfig(), "colour", "red", "execution")
    assert "colour" in str(info.value)


def test_apply_config_update_targets_the_right_layer():
    config = StarkNodeKitConfig()
    apply_config_update(config, "client", "geth", "execution")
    apply_config_update(config, "client", "lighthouse", "consensus")
    assert config.execution_client_settings.name is ClientType.GETH
    assert config.consensus_client_settings.name is ClientType.LIGHTHOUSE


def test_apply_config_update_invalid_target():
    config = StarkNodeKitConfig()
    with pytest.raises(ConfigError) as info:
        apply_config_update(config, "client", "geth", "starknet")
    assert "starknet" in str(info.value)


def test_process_config_args_lowercases_keys():
    config = StarkNodeKitConfig()
    process_config_args(config, ["CLIENT=reth", "Port=30303,30304"], "execution")
    assert config.execution_client_settings.name is ClientType.RETH
    assert config.execution_client_settings.port == [30303, 30304]
    assert config.consensus_client_settings == ClientConfig()


def test_process_config_args_skips_malformed(caplog):
    config = StarkNodeKitConfig()
    with caplog.at_level(logging.WARNING):
        process_config_args(config, ["noequals", "type=full"], "execution")
    assert config.execution_client_settings.execution_type == "full"
    assert "noequals" in caplog.text


def test_process_config_args_value_may_contain_equals():
    config = StarkNodeKitConfig()
    process_config_args(config, ["type=a=b"], "consensus")
    assert config.consensus_client_settings.execution_type == "a=b"


def test_process_config_args_propagates_errors():
    config = StarkNodeKitConfig()
    with pytest.raises(ConfigError):
        process_config_args(config, ["port=nope"], "execution")
    assert config.execution_client_settings.port == []


def test_juno_config_defaults():
    juno = JunoConfig()
    assert juno.port == 6060
    assert juno.eth_node == "ws://localhost:8546"