"""Deploy configuration: built-in defaults with optional YAML overrides"""
import yaml
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from inky_deploy.core import ConfigLoader, FileSystemService

DEFAULT_CONFIG_PATH = "inky-deploy.yaml"


class ConfigError(ValueError):
    """Raised when a config file is missing, malformed, or has bad values."""
    pass


@dataclass(frozen=True)
class DeployConfig:
    """Fixed settings for one deploy run.

    Attributes:
        host: ssh destination of the board (an ssh_config alias or user@host)
        target: cross-compilation triple passed to the build tool
        binary: name of the built executable
        deploy_dir: local staging directory, also its name under remote ~
        gdb_port: port gdbserver listens on (bound to localhost)
        remote_home: absolute home directory on the board, used for --run
        build_tool: cross-compiler front-end invoked as `<tool> build`
        build_dir: local build output tree removed by --clean
        strict: abort on first failing step instead of carrying on
    """
    host: str = "pizw"
    target: str = "arm-unknown-linux-gnueabi"
    binary: str = "inky-gotchi"
    deploy_dir: str = "inky-gotchi-deploy"
    gdb_port: int = 1234
    remote_home: str = "/home/pi"
    build_tool: str = "cross"
    build_dir: str = "target"
    strict: bool = False


def _validate(overrides: Dict[str, Any], source: str) -> Dict[str, Any]:
    """Check override keys and value types against DeployConfig fields."""
    known = {f.name: f for f in fields(DeployConfig)}

    unknown = sorted(set(overrides) - set(known))
    if unknown:
        raise ConfigError(
            f"Unknown key(s) in {source}: {', '.join(unknown)}\n"
            f"Valid keys: {', '.join(known)}"
        )

    for key, value in overrides.items():
        expected = known[key].type
        if expected in (int, 'int'):
            # bool is an int subclass; `gdb_port: yes` is still a mistake
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{source}: '{key}' must be an integer, got {value!r}")
        elif expected in (bool, 'bool'):
            if not isinstance(value, bool):
                raise ConfigError(f"{source}: '{key}' must be true or false, got {value!r}")
        elif not isinstance(value, str) or not value:
            raise ConfigError(f"{source}: '{key}' must be a non-empty string, got {value!r}")

    port = overrides.get('gdb_port')
    if port is not None and not 1 <= port <= 65535:
        raise ConfigError(f"{source}: 'gdb_port' must be between 1 and 65535, got {port}")

    return overrides


def load_config(
    loader: ConfigLoader,
    filesystem: FileSystemService,
    config_path: Optional[Union[str, Path]] = None
) -> DeployConfig:
    """Build the DeployConfig for this run.

    Args:
        loader: YAML loader
        filesystem: used to check whether the default config file exists
        config_path: explicit --config path (must exist), or None to look for
            inky-deploy.yaml in the working directory

    Returns:
        DeployConfig with file values applied over the defaults

    Raises:
        ConfigError: explicit file missing, invalid YAML, unknown keys, bad values
    """
    if config_path is None:
        if not filesystem.exists(DEFAULT_CONFIG_PATH):
            return DeployConfig()
        config_path = DEFAULT_CONFIG_PATH
    elif not filesystem.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        data = loader.load_yaml(config_path)
    except OSError as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return DeployConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping at top level, got {type(data).__name__}")

    return replace(DeployConfig(), **_validate(data, str(config_path)))
