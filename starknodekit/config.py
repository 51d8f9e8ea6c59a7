"""Node kit configuration and updates from ``key=value`` arguments."""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .clienttypes import (
    ClientType,
    UnsupportedClientError,
    get_consensus_client,
    get_execution_client,
)

log = logging.getLogger(__name__)

EXECUTION_TARGET = "execution"
CONSENSUS_TARGET = "consensus"

_PORT_PATTERN = re.compile(r"[+-]?[0-9]+")

_KEY_HELP = (
    "Available keys you can set:\n"
    "  - client           (client name)\n"
    "  - port             (client ports, comma-separated)"
)


class ConfigError(ValueError):
    """Raised when a configuration value or target is invalid."""


@dataclass
class ClientConfig:
    """Settings for one execution or consensus client."""

    name: Optional[Union[ClientType, str]] = None
    execution_type: str = ""
    port: list[int] = field(default_factory=list)
    consensus_checkpoint: str = ""


@dataclass
class JunoConfig:
    """Settings for the Juno Starknet node."""

    port: int = 6060
    eth_node: str = "ws://localhost:8546"


@dataclass
class StarkNodeKitConfig:
    """The whole kit configuration."""

    network: str = ""
    execution_client_settings: ClientConfig = field(default_factory=ClientConfig)
    consensus_client_settings: ClientConfig = field(default_factory=ClientConfig)
    juno_config: JunoConfig = field(default_factory=JunoConfig)


def parse_ports(value: str) -> list[int]:
    """Parse a comma-separated list of ports, ignoring empty entries."""
    ports = []
    for part in value.split(","):
        trimmed = part.strip()
        if not trimmed:
            continue
        if not _PORT_PATTERN.fullmatch(trimmed):
            raise ConfigError(f"invalid port: {trimmed!r}")
        ports.append(int(trimmed))
    return ports


def _lookup_client(target: str, value: str) -> Optional[ClientType]:
    try:
        if target == EXECUTION_TARGET:
            return get_execution_client(value)
        if target == CONSENSUS_TARGET:
            return get_consensus_client(value)
    except UnsupportedClientError as exc:
        raise ConfigError(str(exc)) from exc
    return None


def set_client_config_value(
    client_config: ClientConfig, key: str, value: str, target: str
) -> ClientConfig:
    """Return a copy of ``client_config`` with ``key`` set to ``value``."""
    if key == "client":
        client = _lookup_client(target, value)
        if client is None:
            return dataclasses.replace(client_config)
        return dataclasses.replace(client_config, name=client)
    if key == "port":
        return dataclasses.replace(client_config, port=parse_ports(value))
    if key == "type":
        return dataclasses.replace(client_config, execution_type=value)
    raise ConfigError(f"unknown config key: {key}\n{_KEY_HELP}")


def apply_config_update(
    config: StarkNodeKitConfig, key: str, value: str, target: str
) -> None:
    """Set ``key`` on the execution or consensus settings of ``config``."""
    if target == EXECUTION_TARGET:
        config.execution_client_settings = set_client_config_value(
            config.execution_client_settings, key, value, target
        )
    elif target == CONSENSUS_TARGET:
        config.consensus_client_settings = set_client_config_value(
            config.consensus_client_settings, key, value, target
        )
    else:
        raise ConfigError(
            f"invalid config target: {target} (must be 'execution' or 'consensus')"
        )


def process_config_args(
    config: StarkNodeKitConfig, args: Iterable[str], target: str
) -> None:
    """Apply every ``key=value`` argument to ``config``; malformed ones are skipped."""
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep:
            log.warning("Invalid argument (must be key=value): %s", arg)
            continue
        apply_config_update(config, key.lower(), value, target)