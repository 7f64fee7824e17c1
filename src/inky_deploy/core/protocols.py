"""Protocol definitions for dependency injection.

Every external effect the deploy driver has (printing, touching the local
filesystem, spawning ssh/scp/cross) goes through one of these Protocols.
Protocols use structural typing, so a test double only has to implement the
methods it is asked for.
"""

from typing import Protocol, Any, Optional, List, Union
from pathlib import Path
from dataclasses import dataclass


class Logger(Protocol):
    """Abstraction for user-facing output."""

    def info(self, message: str) -> None:
        """Log informational message."""
        ...

    def warning(self, message: str) -> None:
        """Log warning message."""
        ...

    def error(self, message: str) -> None:
        """Log error message."""
        ...

    def debug(self, message: str) -> None:
        """Log debug message (shown with --verbose only)."""
        ...


class FileSystemService(Protocol):
    """Abstraction for the local filesystem operations used while staging."""

    def exists(self, path: Union[str, Path]) -> bool:
        """Check if path exists."""
        ...

    def is_dir(self, path: Union[str, Path]) -> bool:
        """Check if path is a directory."""
        ...

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        ...

    def mkdir(self, path: Union[str, Path], parents: bool = True, exist_ok: bool = True) -> None:
        """Create directory (with parents if specified)."""
        ...

    def rmtree(self, path: Union[str, Path]) -> None:
        """Recursively remove directory tree."""
        ...

    def remove_file(self, path: Union[str, Path]) -> None:
        """Remove a single file (or symlink)."""
        ...

    def copy_file(self, src: Union[str, Path], dest_dir: Union[str, Path]) -> Path:
        """Copy a file (keeping its mode bits) into dest_dir. Returns the new path."""
        ...


@dataclass
class ProcessResult:
    """Outcome of a synchronous command.

    stdout is only populated when output was captured; otherwise the
    command wrote straight to the terminal and stdout is None.
    """
    returncode: int
    stdout: Optional[str] = None
    stderr: Optional[str] = None


class ProcessHandle(Protocol):
    """Abstraction for a spawned (not awaited) subprocess."""

    @property
    def pid(self) -> int:
        """Local process id of the spawned command."""
        ...


class ProcessExecutor(Protocol):
    """Abstraction for process execution.

    Wraps subprocess.run / subprocess.Popen so the driver can be tested
    without spawning real processes.
    """

    def run(
        self,
        cmd: List[str],
        capture_output: bool = False
    ) -> ProcessResult:
        """Run command to completion.

        Without capture_output the command inherits the caller's terminal.
        """
        ...

    def spawn_detached(self, cmd: List[str]) -> ProcessHandle:
        """Start command with all standard streams on devnull and do not wait."""
        ...


class ConfigLoader(Protocol):
    """Abstraction for configuration file loading."""

    def load_yaml(self, path: Union[str, Path]) -> Any:
        """Load YAML file and return the parsed document."""
        ...
