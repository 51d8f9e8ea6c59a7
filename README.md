# starknodekit

A library for installing, configuring and launching Ethereum execution
and consensus clients (Geth, Reth, Lighthouse, Prysm) alongside the
Juno Starknet node.

## What it does

- Lays out a working directory for client binaries, databases, logs,
  the shared JWT secret and the kit's configuration (`starknodekit.paths`).
- Maps client names to the supported execution, consensus and Starknet
  clients (`starknodekit.clienttypes`).
- Downloads and unpacks a given release of a client for the current
  platform, updates it, reads its version, or removes it
  (`starknodekit.installer`).
- Compares dotted version numbers and reads the version a client
  binary reports (`starknodekit.versioning`).
- Edits execution and consensus client settings from `key=value`
  arguments (`starknodekit.config`).
- Builds each client's command line and starts it in the background,
  writing its output to a time-stamped log file (`starknodekit.clients`).

## Paths

All files live below one base directory: `starknode-kit` inside the
user's configuration directory by default (`$XDG_CONFIG_HOME` or
`~/.config` on Linux, `~/Library/Application Support` on macOS,
`%AppData%` on Windows).

```python
from starknodekit.paths import KitPaths, default_paths

paths = default_paths()
custom = KitPaths.from_base("/srv/nodes")   # -> /srv/nodes/starknode-kit/...
print(custom.install_clients_dir, custom.install_starknet_dir, custom.jwt_path)
```

## Choosing clients

```python
from starknodekit.clienttypes import (
    ClientType,
    UnsupportedClientError,
    get_consensus_client,
    get_execution_client,
    get_starknet_client,
)

execution = get_execution_client("geth")       # ClientType.GETH
consensus = get_consensus_client("lighthouse") # ClientType.LIGHTHOUSE
starknet = get_starknet_client("juno")         # ClientType.JUNO

try:
    get_execution_client("lighthouse")
except UnsupportedClientError as exc:
    print(exc)   # names the supported execution clients
```

## Installing and removing

```python
from starknodekit.installer import InstallError, Installer
from starknodekit.paths import default_paths

paths = default_paths()
installer = Installer(paths.install_clients_dir, paths)

installer.install_client(execution, "1.16.1")   # False if already present
installer.update_client(execution, "1.16.1")    # reinstall over the existing one
print(installer.client_version(execution))
installer.remove_client(execution)              # False if nothing to remove
```

Creating an `Installer` writes a random 32-byte hex JWT secret to
`paths.jwt_path` unless the JWT directory already exists. Installing
Juno also installs its build dependencies with the system package
manager (`apt-get`, `dnf`, `pacman` or `brew`) and builds it with
`make`. Failures are raised as `InstallError`.

## Versions

```python
from starknodekit.versioning import (
    compare_client_versions,
    compare_versions,
    parse_version_output,
)

compare_versions("1.10.0", "1.9.0")                 # 1
compare_client_versions("reth", "1.2.3", "1.3.0")   # False: an update is available
parse_version_output("geth", "geth version 1.16.1") # "1.16.1"
```

`get_version_number(client, paths)` runs the installed binary with
`--version` (Prysm: `beacon-chain --version`) and returns the parsed
version, or `None`; Juno's version is read from its `.version` file.

## Configuration

```python
from starknodekit.config import ConfigError, StarkNodeKitConfig, process_config_args

config = StarkNodeKitConfig(network="mainnet")
process_config_args(config, ["client=reth", "port=30303", "type=archive"], "execution")
process_config_args(config, ["client=prysm", "port=9000,9001"], "consensus")
```

Recognised keys are `client`, `port` (comma-separated) and `type`.
Arguments without `=` are skipped with a warning. An unknown key, an
unsupported client, a non-numeric port or a target other than
`execution` or `consensus` raises `ConfigError`.

## Starting clients

```python
from starknodekit.clients import (
    new_consensus_client,
    new_execution_client,
    new_juno_client,
)

el = new_execution_client(config.execution_client_settings, config.network, paths)
cl = new_consensus_client(config.consensus_client_settings, config.network, paths)
cl.start()
el.start()

juno = new_juno_client(config.juno_config, config.network, paths)  # InstallError if not built
juno.start()
```

`build_args()` on each client returns the command line it would be
started with. `start()` returns the `subprocess.Popen` of a process
running in its own session; its output is appended to
`<client>/logs/<client>_<timestamp>.log` below the clients directory
(the Starknet clients directory for Juno).

## What it does not do

- There is no command-line program; everything is used from Python.
- Configuration is held in memory only: nothing here reads or writes
  the `starknode.yaml` file that `KitPaths.config_path` points to.
- It does not look up the latest release of a client; the version to
  install or compare against must be given.
- It does not monitor, stop or restart clients once they are started,
  beyond the `Popen` object that `start()` returns.