"""Filesystem locations used by the node kit."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

KIT_DIR_NAME = "starknode-kit"


@dataclass(frozen=True)
class KitPaths:
    """Every directory and file the kit reads or writes."""

    install_dir: Path
    install_clients_dir: Path
    install_starknet_dir: Path
    jwt_dir: Path
    jwt_path: Path
    config_dir: Path
    config_path: Path
    env_file_path: Path

    @classmethod
    def from_base(cls, base: str | os.PathLike[str]) -> "KitPaths":
        """Lay out the kit's directories under ``base``."""
        install_dir = Path(base) / KIT_DIR_NAME
        clients_dir = install_dir / "ethereum_clients"
        jwt_dir = clients_dir / "jwt"
        config_dir = install_dir / "config"
        return cls(
            install_dir=install_dir,
            install_clients_dir=clients_dir,
            install_starknet_dir=install_dir / "starknet_clients",
            jwt_dir=jwt_dir,
            jwt_path=jwt_dir / "jwt.hex",
            config_dir=config_dir,
            config_path=config_dir / "starknode.yaml",
            env_file_path=config_dir / ".starknode.env",
        )


def default_config_dir() -> Path:
    """Return the per-user configuration directory for this platform."""
    env = os.environ
    if sys.platform.startswith("win"):
        app_data = env.get("AppData", "")
        if not app_data:
            raise RuntimeError("%AppData% is not defined")
        return Path(app_data)

    if sys.platform == "darwin":
        home = env.get("HOME", "")
        if not home:
            raise RuntimeError("$HOME is not defined")
        return Path(home) / "Library" / "Application Support"

    xdg = env.get("XDG_CONFIG_HOME", "")
    if xdg:
        if not os.path.isabs(xdg):
            raise RuntimeError("path in $XDG_CONFIG_HOME is relative")
        return Path(xdg)
    home = env.get("HOME", "")
    if not home:
        raise RuntimeError("neither $XDG_CONFIG_HOME nor $HOME are defined")
    return Path(home) / ".config"


def default_paths() -> KitPaths:
    """Return the kit layout under the user's configuration directory."""
    return KitPaths.from_base(default_config_dir())