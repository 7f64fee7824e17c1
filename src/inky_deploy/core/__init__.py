"""Core dependency injection infrastructure for inky-deploy.

Protocol-based abstractions for every external dependency the deploy driver
touches (console, filesystem, subprocess, config files), plus the production
implementations wired up by the CLI.
"""

from inky_deploy.core.protocols import (
    Logger,
    FileSystemService,
    ProcessExecutor,
    ProcessHandle,
    ProcessResult,
    ConfigLoader,
)

from inky_deploy.core.implementations import (
    COMMAND_NOT_FOUND,
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    YamlConfigLoader,
)

__all__ = [
    # Protocols
    "Logger",
    "FileSystemService",
    "ProcessExecutor",
    "ProcessHandle",
    "ProcessResult",
    "ConfigLoader",
    # Implementations
    "COMMAND_NOT_FOUND",
    "ConsoleLogger",
    "RealFileSystemService",
    "SubprocessExecutor",
    "YamlConfigLoader",
]
