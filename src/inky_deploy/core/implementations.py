"""Production implementations of dependency injection protocols.

These wrap the real external dependencies (console, filesystem, subprocess,
YAML files). Tests use mocks instead.
"""

import shutil
import subprocess
import sys
import yaml
from pathlib import Path
from typing import Any, List, Union

from inky_deploy.core.protocols import ProcessResult

# Exit status a shell reports for a command it cannot find
COMMAND_NOT_FOUND = 127


class ConsoleLogger:
    """Production logger that prints to console (stdout/stderr)."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def info(self, message: str) -> None:
        """Print info message to stdout."""
        print(message)

    def warning(self, message: str) -> None:
        """Print warning message to stdout."""
        print(f"Warning: {message}")

    def error(self, message: str) -> None:
        """Print error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        """Print debug message to stdout when verbose."""
        if self.verbose:
            print(f"Debug: {message}")


class RealFileSystemService:
    """Production filesystem service using real pathlib and shutil operations."""

    def exists(self, path: Union[str, Path]) -> bool:
        """Check if path exists."""
        return Path(path).exists()

    def is_dir(self, path: Union[str, Path]) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        with open(path, 'r') as f:
            return f.read()

    def mkdir(self, path: Union[str, Path], parents: bool = True, exist_ok: bool = True) -> None:
        """Create directory."""
        Path(path).mkdir(parents=parents, exist_ok=exist_ok)

    def rmtree(self, path: Union[str, Path]) -> None:
        """Recursively remove directory tree."""
        shutil.rmtree(path)

    def remove_file(self, path: Union[str, Path]) -> None:
        """Remove a single file (or symlink)."""
        Path(path).unlink()

    def copy_file(self, src: Union[str, Path], dest_dir: Union[str, Path]) -> Path:
        """Copy file into dest_dir, preserving the executable bit."""
        return Path(shutil.copy(src, dest_dir))


class SubprocessHandle:
    """Wrapper around subprocess.Popen handle."""

    def __init__(self, popen_handle):
        """Initialize with actual subprocess.Popen object."""
        self._handle = popen_handle

    @property
    def pid(self) -> int:
        return self._handle.pid


class SubprocessExecutor:
    """Production process executor using real subprocess."""

    def run(
        self,
        cmd: List[str],
        capture_output: bool = False
    ) -> ProcessResult:
        """Run command to completion.

        A missing executable is reported like the shell does (exit 127)
        instead of raising, so callers only ever look at returncode.
        """
        try:
            result = subprocess.run(
                cmd,
                capture_output=capture_output,
                text=True
            )
        except FileNotFoundError as e:
            return ProcessResult(
                returncode=COMMAND_NOT_FOUND,
                stdout="" if capture_output else None,
                stderr=f"{cmd[0]}: command not found ({e})"
            )
        return ProcessResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr
        )

    def spawn_detached(self, cmd: List[str]) -> SubprocessHandle:
        """Start command fully detached from our stdin/stdout/stderr."""
        handle = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True
        )
        return SubprocessHandle(handle)


class YamlConfigLoader:
    """Production config loader using real YAML parser."""

    def __init__(self, filesystem: 'RealFileSystemService'):
        """Initialize with filesystem service for reading files."""
        self.fs = filesystem

    def load_yaml(self, path: Union[str, Path]) -> Any:
        """Load YAML file and return parsed document."""
        content = self.fs.read_file(path)
        return yaml.safe_load(content)
