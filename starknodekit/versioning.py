"""Version comparison and discovery of installed client versions."""

from __future__ import annotations

import logging
import re
import subprocess
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from .clienttypes import ClientType, UnsupportedClientError
from .paths import KitPaths

log = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], str]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

JUNO_VERSION_PATTERN = re.compile(r"juno version (\d+\.\d+\.\d+)")

_OUTPUT_PATTERNS = {
    ClientType.RETH: re.compile(r"reth Version: (\d+\.\d+\.\d+)"),
    ClientType.LIGHTHOUSE: re.compile(r"Lighthouse v(\d+\.\d+\.\d+)"),
    ClientType.GETH: re.compile(r"geth version (\d+\.\d+\.\d+)"),
    ClientType.PRYSM: re.compile(r"beacon-chain-v(\d+\.\d+\.\d+)-"),
}

_VERSION_ARGS = {
    ClientType.RETH: ("--version",),
    ClientType.LIGHTHOUSE: ("--version",),
    ClientType.GETH: ("--version",),
    ClientType.PRYSM: ("beacon-chain", "--version"),
}


def _to_client(client: str) -> ClientType:
    try:
        return ClientType(str(client))
    except ValueError:
        raise UnsupportedClientError("known", str(client), tuple(ClientType)) from None


def _component(part: str) -> int:
    match = _LEADING_INT.match(part)
    return int(match.group(1)) if match else 0


def compare_versions(v1: str, v2: str) -> int:
    """Compare dotted versions component by component; return -1, 0 or 1."""
    for a, b in zip(map(_component, v1.split(".")), map(_component, v2.split("."))):
        if a < b:
            return -1
        if a > b:
            return 1
    return 0


def compare_client_versions(client: str, installed_version: str, latest_version: str) -> bool:
    """Return True if the installed version is at least the latest one."""
    return compare_versions(installed_version, latest_version) >= 0


def parse_version_output(client: str, output: str) -> Optional[str]:
    """Extract the version number from a client's ``--version`` output."""
    kind = _to_client(client)
    if kind is ClientType.JUNO:
        match = JUNO_VERSION_PATTERN.search(output)
    else:
        match = _OUTPUT_PATTERNS[kind].search(output.strip())
    return match.group(1) if match else None


def _run(argv: Sequence[str]) -> str:
    return subprocess.run(list(argv), check=True, capture_output=True, text=True).stdout


def _client_command(kind: ClientType, paths: KitPaths) -> Path:
    client_dir = paths.install_clients_dir / kind.value
    if kind is ClientType.PRYSM:
        return client_dir / "prysm.sh"
    return client_dir / kind.value


def get_version_number(
    client: str, paths: KitPaths, runner: Optional[Runner] = None
) -> Optional[str]:
    """Return the installed version of ``client``, or None if it cannot be found."""
    kind = _to_client(client)

    if kind is ClientType.JUNO:
        version_file = paths.install_starknet_dir / "juno" / ".version"
        try:
            text = version_file.read_text()
        except OSError:
            text = ""
        return parse_version_output(kind, text)

    if sys.platform.startswith("win"):
        raise RuntimeError("reading client versions is unsupported on windows")

    argv = [str(_client_command(kind, paths)), *_VERSION_ARGS[kind]]
    try:
        output = (runner or _run)(argv)
    except (OSError, subprocess.CalledProcessError) as exc:
        log.warning("Error executing command for %s: %s", kind, exc)
        return None

    version = parse_version_output(kind, output)
    if version is None:
        log.warning("Unable to parse version number for %s", kind)
    return version