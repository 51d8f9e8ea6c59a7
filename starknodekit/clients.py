"""Launching the execution, consensus and Starknet node clients."""

from __future__ import annotations

import logging
import subprocess
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from .clienttypes import (
    CONSENSUS_CLIENTS,
    EXECUTION_CLIENTS,
    ClientType,
    UnsupportedClientError,
)
from .config import ClientConfig, JunoConfig
from .installer import InstallError
from .paths import KitPaths, default_paths

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

_KNOWN_JUNO_NETWORKS = ("mainnet", "sepolia", "sepolia-integration")


def _is_windows() -> bool:
    return sys.platform.startswith("win")


def _timestamp() -> str:
    return time.strftime("%Y-%m-%d_%H-%M-%S")


def _binary(paths: KitPaths, client: ClientType, unix_name: str) -> Path:
    client_dir = paths.install_clients_dir / client.value
    if _is_windows():
        return client_dir / f"{client.value}.exe"
    return client_dir / unix_name


def _log_path(base: Path, client: ClientType) -> Path:
    return base / client.value / "logs" / f"{client.value}_{_timestamp()}.log"


def start_client(
    name: str, command: PathLike, log_path: PathLike, args: Sequence[str]
) -> subprocess.Popen:
    """Start ``command`` in the background with its output appended to ``log_path``."""
    log.info("Starting %s", name)
    with open(log_path, "ab") as log_file:
        return subprocess.Popen(
            [str(command), *args],
            stdout=log_file,
            stderr=log_file,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )


def _require_ports(ports: Sequence[int], count: int, client: ClientType) -> None:
    if len(ports) < count:
        raise ValueError(f"{client} needs {count} port(s), got {len(ports)}")


@dataclass
class GethClient:
    """The Geth execution client."""

    port: int
    execution_type: str = ""
    network: str = ""
    paths: KitPaths = field(default_factory=default_paths)

    def command(self) -> Path:
        """Return the path of the geth binary."""
        return _binary(self.paths, ClientType.GETH, "geth")

    def build_args(self) -> list[str]:
        """Return the command-line arguments for geth."""
        args = [
            f"--{self.network}",
            f"--port={self.port}",
            f"--discovery.port={self.port}",
            "--http",
            "--http.api=eth,net,engine,admin",
            "--http.corsdomain=*",
            "--http.addr=0.0.0.0",
            "--http.port=8545",
            f"--authrpc.jwtsecret={self.paths.jwt_path}",
            "--authrpc.addr=0.0.0.0",
            "--authrpc.port=8551",
            "--authrpc.vhosts=*",
            "--metrics",
            "--metrics.addr=0.0.0.0",
            "--metrics.port=7878",
        ]
        if self.execution_type == "full":
            args.append("--syncmode=snap")
        elif self.execution_type == "archive":
            args.extend(["--syncmode=full", "--gcmode=archive"])
        data_dir = self.paths.install_clients_dir / "geth" / "database"
        args.append(f"--datadir={data_dir}")
        return args

    def start(self) -> subprocess.Popen:
        """Launch geth in the background."""
        return start_client(
            ClientType.GETH.value,
            self.command(),
            _log_path(self.paths.install_clients_dir, ClientType.GETH),
            self.build_args(),
        )


@dataclass
class RethClient:
    """The Reth execution client."""

    port: int
    execution_type: str = ""
    network: str = ""
    paths: KitPaths = field(default_factory=default_paths)

    def command(self) -> Path:
        """Return the path of the reth binary."""
        return _binary(self.paths, ClientType.RETH, "reth")

    def build_args(self) -> list[str]:
        """Return the command-line arguments for reth."""
        args = [
            "node",
            "--chain", self.network,
            "--http",
            "--http.addr", "0.0.0.0",
            "--http.port", "8545",
            "--http.api", "eth,net,admin",
            "--http.corsdomain", "*",
            "--authrpc.addr", "0.0.0.0",
            "--authrpc.port", "8551",
            "--authrpc.jwtsecret", str(self.paths.jwt_path),
            "--port", str(self.port),
            "--metrics", "0.0.0.0:7878",
        ]
        if self.execution_type == "archive":
            args.append("--archive")
        data_dir = self.paths.install_clients_dir / "reth" / "database"
        args.extend(["--datadir", str(data_dir)])
        return args

    def start(self) -> subprocess.Popen:
        """Launch reth in the background."""
        return start_client(
            ClientType.RETH.value,
            self.command(),
            _log_path(self.paths.install_clients_dir, ClientType.RETH),
            self.build_args(),
        )


@dataclass
class LighthouseClient:
    """The Lighthouse consensus client; ``port`` is ``[tcp, quic]``."""

    port: list[int]
    consensus_checkpoint: str = ""
    network: str = ""
    paths: KitPaths = field(default_factory=default_paths)

    def command(self) -> Path:
        """Return the path of the lighthouse binary."""
        return _binary(self.paths, ClientType.LIGHTHOUSE, "lighthouse")

    def build_args(self) -> list[str]:
        """Return the command-line arguments for lighthouse."""
        _require_ports(self.port, 2, ClientType.LIGHTHOUSE)
        data_dir = self.paths.install_clients_dir / "lighthouse" / "database"
        return [
            "bn",
            "--network",
            self.network,
            f"--port={self.port[0]}",
            f"--quic-port={self.port[1]}",
            "--execution-endpoint",
            "http://localhost:8551",
            "--checkpoint-sync-url",
            self.consensus_checkpoint,
            "--checkpoint-sync-url-timeout",
            "1200",
            "--disable-deposit-contract-sync",
            "--execution-jwt",
            str(self.paths.jwt_path),
            "--metrics",
            "--metrics-address",
            "127.0.0.1",
            "--metrics-port",
            "5054",
            "--http",
            # UPnP triggers panics in the p2p library.
            "--disable-upnp",
            f"--datadir={data_dir}",
        ]

    def start(self) -> subprocess.Popen:
        """Launch lighthouse in the background."""
        return start_client(
            ClientType.LIGHTHOUSE.value,
            self.command(),
            _log_path(self.paths.install_clients_dir, ClientType.LIGHTHOUSE),
            self.build_args(),
        )


@dataclass
class PrysmClient:
    """The Prysm consensus client; ``port`` is ``[tcp/quic, udp]``."""

    port: list[int]
    consensus_checkpoint: str = ""
    network: str = ""
    paths: KitPaths = field(default_factory=default_paths)

    def command(self) -> Path:
        """Return the path of the prysm launcher script."""
        return _binary(self.paths, ClientType.PRYSM, "prysm.sh")

    def build_args(self) -> list[str]:
        """Return the command-line arguments for prysm."""
        _require_ports(self.port, 2, ClientType.PRYSM)
        data_dir = self.paths.install_clients_dir / "prysm" / "database"
        return [
            "beacon-chain",
            f"--{self.network}",
            f"--p2p-udp-port={self.port[1]}",
            f"--p2p-quic-port={self.port[0]}",
            f"--p2p-tcp-port={self.port[0]}",
            "--execution-endpoint",
            "http://localhost:8551",
            "--grpc-gateway-host=0.0.0.0",
            "--grpc-gateway-port=5052",
            f"--checkpoint-sync-url={self.consensus_checkpoint}",
            f"--genesis-beacon-api-url={self.consensus_checkpoint}",
            "--accept-terms-of-use=true",
            "--jwt-secret",
            str(self.paths.jwt_path),
            "--monitoring-host",
            "127.0.0.1",
            "--monitoring-port",
            "5054",
            f"--datadir={data_dir}",
        ]

    def start(self) -> subprocess.Popen:
        """Launch prysm in the background."""
        return start_client(
            ClientType.PRYSM.value,
            self.command(),
            _log_path(self.paths.install_clients_dir, ClientType.PRYSM),
            self.build_args(),
        )


def juno_path(paths: KitPaths) -> Optional[Path]:
    """Return the built Juno binary, or None if Juno is not installed."""
    candidate = paths.install_starknet_dir / "juno" / "juno" / "build" / "juno"
    return candidate if candidate.exists() else None


@dataclass
class JunoClient:
    """A local Juno Starknet node."""

    config: JunoConfig = field(default_factory=JunoConfig)
    network: str = ""
    paths: KitPaths = field(default_factory=default_paths)

    def build_args(self) -> list[str]:
        """Return the command-line arguments for juno."""
        db_path = self.paths.install_starknet_dir / "juno" / "database"
        args = [
            "--http",
            f"--http-port={self.config.port}",
            "--http-host=0.0.0.0",
            f"--db-path={db_path}",
            f"--eth-node={self.config.eth_node}",
        ]
        if self.network in _KNOWN_JUNO_NETWORKS:
            args.append(f"--network={self.network}")
        return args

    def start(self) -> subprocess.Popen:
        """Launch juno in the background."""
        binary = juno_path(self.paths)
        if binary is None:
            raise InstallError(
                "Juno is not installed. Please install it first using "
                "'starknode-kit add -s juno'"
            )
        return start_client(
            ClientType.JUNO.value,
            binary,
            _log_path(self.paths.install_starknet_dir, ClientType.JUNO),
            self.build_args(),
        )


def _paths_or_default(paths: Optional[KitPaths]) -> KitPaths:
    return paths if paths is not None else default_paths()


def new_consensus_client(
    cfg: ClientConfig, network: str, paths: Optional[KitPaths] = None
) -> Union[LighthouseClient, PrysmClient]:
    """Build the consensus client described by ``cfg``."""
    name = str(cfg.name)
    kit_paths = _paths_or_default(paths)
    if name == ClientType.LIGHTHOUSE.value:
        return LighthouseClient(
            port=list(cfg.port),
            consensus_checkpoint=cfg.consensus_checkpoint,
            network=network,
            paths=kit_paths,
        )
    if name == ClientType.PRYSM.value:
        return PrysmClient(
            port=list(cfg.port),
            consensus_checkpoint=cfg.consensus_checkpoint,
            network=network,
            paths=kit_paths,
        )
    raise UnsupportedClientError("consensus", name, CONSENSUS_CLIENTS)


def new_execution_client(
    cfg: ClientConfig, network: str, paths: Optional[KitPaths] = None
) -> Union[GethClient, RethClient]:
    """Build the execution client described by ``cfg``."""
    name = str(cfg.name)
    kit_paths = _paths_or_default(paths)
    if name == ClientType.GETH.value:
        factory = GethClient
    elif name == ClientType.RETH.value:
        factory = RethClient
    else:
        raise UnsupportedClientError("execution", name, EXECUTION_CLIENTS)
    if not cfg.port:
        raise ValueError(f"{name} needs a port")
    return factory(
        port=cfg.port[0],
        execution_type=cfg.execution_type,
        network=network,
        paths=kit_paths,
    )


def new_juno_client(
    config: Optional[JunoConfig], network: str, paths: Optional[KitPaths] = None
) -> JunoClient:
    """Build a Juno client; Juno must already be installed."""
    kit_paths = _paths_or_default(paths)
    if juno_path(kit_paths) is None:
        raise InstallError(
            "Juno is not installed. Please install it first using "
            "'starknode-kit add -s juno'"
        )
    return JunoClient(
        config=config if config is not None else JunoConfig(),
        network=network,
        paths=kit_paths,
    )