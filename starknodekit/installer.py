"""Downloading, installing, updating and removing node clients."""

from __future__ import annotations

import logging
import os
import platform
import secrets
import shutil
import subprocess
import tarfile
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional, Sequence, Union

from .clienttypes import ClientType
from .paths import KitPaths, default_paths
from .versioning import JUNO_VERSION_PATTERN, get_version_number

log = logging.getLogger(__name__)

ClientName = Union[ClientType, str]

GETH_HASH = {
    "1.14.3": "ab48ba42",
    "1.14.12": "293a300d",
    "1.15.10": "2bf8a789",
    "1.16.1": "12b4131f",
}

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}

_LINUX_DEPENDENCIES = {
    "ubuntu": ["sudo", "apt-get", "install", "-y", "libjemalloc-dev", "libjemalloc2", "pkg-config", "libbz2-dev"],
    "debian": ["sudo", "apt-get", "install", "-y", "libjemalloc-dev", "libjemalloc2", "pkg-config", "libbz2-dev"],
    "fedora": ["sudo", "dnf", "install", "-y", "jemalloc-devel", "pkgconf-pkg-config", "bzip2-devel"],
    "arch": ["sudo", "pacman", "-S", "--noconfirm", "jemalloc", "pkgconf", "bzip2"],
}

_MACOS_DEPENDENCIES = ["brew", "install", "jemalloc", "pkg-config"]


class InstallError(RuntimeError):
    """Raised when a client cannot be installed, located or removed."""


def _coerce(client: ClientName) -> ClientType:
    try:
        return ClientType(str(client))
    except ValueError:
        raise InstallError(f"unknown client: {client}") from None


def _current_platform() -> tuple[str, str]:
    goos = platform.system().lower()
    machine = platform.machine().lower()
    return goos, _ARCH_ALIASES.get(machine, machine)


def get_distro(os_release: Union[str, os.PathLike] = "/etc/os-release") -> str:
    """Return the ``ID`` field of an os-release file."""
    with open(os_release, encoding="utf-8") as handle:
        for line in handle:
            line = line.rstrip("\n")
            if line.startswith("ID="):
                return line.split("=", 1)[1].strip('"')
    raise InstallError("could not determine Linux distro")


def setup_jwt_secret(paths: KitPaths) -> Path:
    """Create the shared JWT secret unless its directory already exists."""
    if paths.jwt_dir.exists():
        return paths.jwt_path
    try:
        paths.jwt_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise InstallError(f"failed to create JWT directory: {exc}") from exc
    try:
        fd = os.open(paths.jwt_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as handle:
            handle.write(secrets.token_hex(32) + "\n")
    except OSError as exc:
        raise InstallError(f"failed to write JWT secret: {exc}") from exc
    return paths.jwt_path


def download_file(url: str, destination: Union[str, os.PathLike]) -> None:
    """Fetch ``url`` and write the body to ``destination``."""
    try:
        with urllib.request.urlopen(url) as response:
            status = getattr(response, "status", None)
            if status is not None and status != 200:
                reason = getattr(response, "reason", "")
                raise InstallError(f"bad status: {status} {reason}".rstrip())
            with open(destination, "wb") as out:
                shutil.copyfileobj(response, out)
    except urllib.error.HTTPError as exc:
        raise InstallError(f"bad status: {exc.code} {exc.reason}") from exc
    except urllib.error.URLError as exc:
        raise InstallError(f"download failed: {exc.reason}") from exc


def _run(argv: Sequence[str], what: str, cwd: Optional[Path] = None) -> None:
    try:
        subprocess.run(list(argv), check=True, cwd=cwd)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise InstallError(f"{what}: {exc}") from exc


def _extract_archive(archive: Path, destination: Path) -> None:
    try:
        with tarfile.open(archive, "r:gz") as tar:
            if hasattr(tarfile, "data_filter"):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except (OSError, tarfile.TarError) as exc:
        raise InstallError(f"error extracting archive: {exc}") from exc


class Installer:
    """Installs and manages node client binaries."""

    def __init__(self, install_dir: Union[str, os.PathLike], paths: Optional[KitPaths] = None):
        self.paths = paths if paths is not None else default_paths()
        self.install_dir = Path(install_dir)
        setup_jwt_secret(self.paths)

    def installed_clients(self, directory: Union[str, os.PathLike]) -> list[ClientType]:
        """Return the known clients that have a folder in ``directory``."""
        known = {client.value: client for client in ClientType}
        with os.scandir(directory) as entries:
            names = sorted(entry.name for entry in entries if entry.is_dir())
        return [known[name] for name in names if name in known]

    def client_file_name(self, client: ClientName, version: str) -> str:
        """Return the release file name for this platform."""
        goos, goarch = _current_platform()
        if goarch not in ("amd64", "arm64"):
            raise InstallError(f"unsupported architecture: {goarch}")
        if goos not in ("darwin", "linux"):
            raise InstallError(f"unsupported OS: {goos}")
        cpu = "x86_64" if goarch == "amd64" else "aarch64"
        vendor = "apple-darwin" if goos == "darwin" else "unknown-linux-gnu"
        arch_name = f"{cpu}-{vendor}"

        kind = _coerce(client)
        if kind is ClientType.GETH:
            return f"geth-{goos}-{goarch}-{version}-{GETH_HASH.get(version, '')}"
        if kind is ClientType.RETH:
            return f"reth-v{version}-{arch_name}"
        if kind is ClientType.LIGHTHOUSE:
            return f"lighthouse-v{version}-{arch_name}"
        if kind is ClientType.PRYSM:
            return "prysm.sh"
        return f"juno-{version}"

    def download_url(self, client: ClientName, file_name: str, version: str) -> str:
        """Return where the release of ``client`` is downloaded from."""
        kind = _coerce(client)
        if kind is ClientType.GETH:
            return f"https://gethstore.blob.core.windows.net/builds/{file_name}.tar.gz"
        if kind is ClientType.RETH:
            return f"https://github.com/paradigmxyz/reth/releases/download/v{version}/{file_name}.tar.gz"
        if kind is ClientType.LIGHTHOUSE:
            return f"https://github.com/sigp/lighthouse/releases/download/v{version}/{file_name}.tar.gz"
        if kind is ClientType.PRYSM:
            return "https://raw.githubusercontent.com/prysmaticlabs/prysm/master/prysm.sh"
        return f"https://github.com/NethermindEth/juno/archive/refs/tags/{version}.tar.gz"

    def client_directory(self, client: ClientName) -> Path:
        """Return the directory a client is installed into."""
        kind = _coerce(client)
        if kind is ClientType.JUNO:
            return self.paths.install_starknet_dir / kind.value
        return self.paths.install_clients_dir / kind.value

    def client_path(self, client: ClientName, client_dir: Union[str, os.PathLike]) -> Path:
        """Return the path of the client's binary or script."""
        kind = _coerce(client)
        if kind is ClientType.PRYSM:
            return Path(client_dir) / "prysm.sh"
        return Path(client_dir) / kind.value

    def install_client(self, client: ClientName, version: str) -> bool:
        """Install ``version`` of a client; return False if it is already present."""
        kind = _coerce(client)
        client_dir = self.client_directory(kind)
        self._setup_client_directories(client_dir)
        client_path = self.client_path(kind, client_dir)
        if client_path.exists():
            log.info("%s is already installed.", kind)
            return False
        self._install(kind, client_path, client_dir, version)
        return True

    def update_client(self, client: ClientName, version: str) -> None:
        """Install ``version`` of a client over the existing installation."""
        kind = _coerce(client)
        client_dir = self.client_directory(kind)
        self._setup_client_directories(client_dir)
        self._install(kind, self.client_path(kind, client_dir), client_dir, version)

    def remove_client(self, client: ClientName) -> bool:
        """Delete a client's installation; return False if there was none."""
        kind = _coerce(client)
        if kind is ClientType.JUNO:
            client_dir = self.paths.install_starknet_dir / kind.value
        else:
            client_dir = self.install_dir / kind.value
        if not client_dir.exists():
            return False
        if kind is ClientType.JUNO:
            for leftover in (".git", "build"):
                shutil.rmtree(client_dir / leftover, ignore_errors=True)
        shutil.rmtree(client_dir)
        log.info("Successfully removed %s", kind)
        return True

    def client_version(self, client: ClientName) -> str:
        """Return the installed version of a client."""
        kind = _coerce(client)
        if kind is ClientType.JUNO:
            client_dir = self.paths.install_starknet_dir / kind.value
        else:
            client_dir = self.install_dir / kind.value
        if not self.client_path(kind, client_dir).exists():
            raise InstallError(f"{kind} is not installed")
        version = get_version_number(kind, self.paths)
        if not version:
            raise InstallError(f"failed to get version for {kind}")
        return version

    def _setup_client_directories(self, client_dir: Path) -> None:
        log.info("Creating '%s'", client_dir)
        for sub in ("database", "logs"):
            try:
                (client_dir / sub).mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise InstallError(f"failed to create {sub} directory: {exc}") from exc

    def _install(self, kind: ClientType, client_path: Path, client_dir: Path, version: str) -> None:
        file_name = self.client_file_name(kind, version)
        url = self.download_url(kind, file_name, version)
        if kind is ClientType.PRYSM:
            self._install_prysm(url, client_path, kind)
        elif kind is ClientType.JUNO:
            self._install_juno(kind, client_dir, url, file_name)
        else:
            self._install_standard(kind, client_dir, url, file_name)
        log.info("%s installed successfully.", kind)

    def _install_prysm(self, url: str, client_path: Path, kind: ClientType) -> None:
        log.info("Downloading %s.", kind)
        download_file(url, client_path)
        try:
            client_path.chmod(0o755)
        except OSError as exc:
            raise InstallError(f"error making prysm.sh executable: {exc}") from exc

    def _download_and_extract(self, kind: ClientType, client_dir: Path, url: str, file_name: str) -> Path:
        archive = client_dir / f"{file_name}.tar.gz"
        log.info("Downloading %s.", kind)
        download_file(url, archive)
        log.info("Uncompressing %s.", kind)
        _extract_archive(archive, client_dir)
        return archive

    def _remove_archive(self, kind: ClientType, archive: Path) -> None:
        log.info("Cleaning up %s directory.", kind)
        try:
            archive.unlink()
        except OSError as exc:
            raise InstallError(f"error removing archive: {exc}") from exc

    def _install_standard(self, kind: ClientType, client_dir: Path, url: str, file_name: str) -> None:
        archive = self._download_and_extract(kind, client_dir, url, file_name)
        if kind is ClientType.GETH:
            self._geth_post_extraction(client_dir, file_name)
        self._remove_archive(kind, archive)

    def _install_juno(self, kind: ClientType, client_dir: Path, url: str, file_name: str) -> None:
        try:
            self._install_juno_dependencies()
        except (InstallError, OSError) as exc:
            raise InstallError(f"failed to install Juno dependencies: {exc}") from exc
        archive = self._download_and_extract(kind, client_dir, url, file_name)
        self._juno_post_extraction(client_dir, file_name)
        self._remove_archive(kind, archive)

    def _geth_post_extraction(self, client_dir: Path, file_name: str) -> None:
        extracted = client_dir / file_name
        try:
            shutil.move(str(extracted / "geth"), str(client_dir / "geth"))
        except OSError as exc:
            raise InstallError(f"error moving geth binary: {exc}") from exc
        try:
            shutil.rmtree(extracted)
        except OSError as exc:
            raise InstallError(f"error removing extracted directory: {exc}") from exc

    def _juno_post_extraction(self, client_dir: Path, file_name: str) -> None:
        file_name = file_name.replace("v", "", 1)
        extracted = client_dir / file_name
        juno_path = client_dir / "juno"
        version = file_name.replace("juno-", "", 1)
        try:
            (client_dir / ".version").write_text(f"juno version {version}")
        except OSError as exc:
            raise InstallError(f"Error writing to file:{exc}") from exc
        try:
            shutil.move(str(extracted), str(juno_path))
        except OSError as exc:
            raise InstallError(f"error moving juno binary: {exc}") from exc
        _run(["make", "juno"], "make failed", cwd=juno_path)

    def _install_juno_dependencies(self) -> None:
        log.info("Installing Juno dependencies...")
        goos, _ = _current_platform()
        if goos == "darwin":
            self._install_macos_dependencies()
        elif goos == "linux":
            self._install_linux_dependencies()

    def _install_macos_dependencies(self) -> None:
        try:
            _run(_MACOS_DEPENDENCIES, "brew install failed")
        except InstallError:
            log.info("brew install failed, trying with arch -arm64...")
            _run(["arch", "-arm64", *_MACOS_DEPENDENCIES], "failed to install macOS dependencies")

    def _install_linux_dependencies(self) -> None:
        distro = get_distro()
        argv = _LINUX_DEPENDENCIES.get(distro)
        if argv is None:
            raise InstallError(f"unsupported distro: {distro}")
        try:
            subprocess.run(argv, check=True, stderr=subprocess.PIPE, text=True)
        except subprocess.CalledProcessError as exc:
            raise InstallError(f"failed to install packages: {exc}\n{exc.stderr or ''}") from exc
        except OSError as exc:
            raise InstallError(f"failed to install packages: {exc}") from exc