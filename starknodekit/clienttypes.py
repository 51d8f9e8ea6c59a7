"""Known node clients and lookup by layer."""

from __future__ import annotations

from enum import Enum


class ClientType(str, Enum):
    """A node client the kit can install and run."""

    GETH = "geth"
    RETH = "reth"
    LIGHTHOUSE = "lighthouse"
    PRYSM = "prysm"
    JUNO = "juno"

    def __str__(self) -> str:
        return self.value


EXECUTION_CLIENTS = (ClientType.GETH, ClientType.RETH)
CONSENSUS_CLIENTS = (ClientType.LIGHTHOUSE, ClientType.PRYSM)
STARKNET_CLIENTS = (ClientType.JUNO,)


class UnsupportedClientError(ValueError):
    """Raised when a name is not a supported client for the requested layer."""

    def __init__(self, kind: str, name: str, supported: tuple[ClientType, ...]):
        self.kind = kind
        self.name = name
        self.supported = supported
        listing = "\n".join(f"  - {client}" for client in supported)
        super().__init__(
            f"unsupported {kind} client: {name}\n"
            f"Supported {kind} clients are:\n{listing}"
        )


def _lookup(kind: str, name: str, supported: tuple[ClientType, ...]) -> ClientType:
    for client in supported:
        if client.value == name:
            return client
    raise UnsupportedClientError(kind, name, supported)


def get_execution_client(name: str) -> ClientType:
    """Return the execution client called ``name``."""
    return _lookup("execution", name, EXECUTION_CLIENTS)


def get_consensus_client(name: str) -> ClientType:
    """Return the consensus client called ``name``."""
    return _lookup("consensus", name, CONSENSUS_CLIENTS)


def get_starknet_client(name: str) -> ClientType:
    """Return the Starknet client called ``name``."""
    return _lookup("Starknet", name, STARKNET_CLIENTS)