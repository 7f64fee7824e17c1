"""Build helper: cleaning and cross-compiling the inky-gotchi binary"""
import shlex
from pathlib import Path
from typing import List

from inky_deploy.core import FileSystemService, ProcessExecutor, Logger
from inky_deploy.deploy.base import StepResult
from inky_deploy.utils.config import DeployConfig


class CrossBuilder:
    """Runs the cross-compiler for the board's target triple.

    The build tool is treated as a black box: it is invoked once, its
    output goes straight to the terminal, and only its exit status is kept.
    """

    def __init__(
        self,
        config: DeployConfig,
        filesystem: FileSystemService,
        process_executor: ProcessExecutor,
        logger: Logger
    ):
        self.config = config
        self.fs = filesystem
        self.process = process_executor
        self.log = logger

    def build_command(self, release: bool = False) -> List[str]:
        """Command line for the build, e.g. `cross build --target=<triple> --release`."""
        cmd = [self.config.build_tool, 'build', f'--target={self.config.target}']
        if release:
            cmd.append('--release')
        return cmd

    def artifact_path(self, release: bool = False) -> Path:
        """Where the build tool leaves the binary for the given profile."""
        profile = 'release' if release else 'debug'
        return Path(self.config.build_dir) / self.config.target / profile / self.config.binary

    def clean(self) -> StepResult:
        """Remove the local build output tree. A missing tree is not an error."""
        build_dir = self.config.build_dir
        self.log.debug(f"rm -rf {build_dir}")

        if not self.fs.exists(build_dir):
            return StepResult('clean', 0)

        try:
            self.fs.rmtree(build_dir)
        except OSError as e:
            return StepResult('clean', 1, f"Could not remove {build_dir}: {e}")
        return StepResult('clean', 0)

    def build(self, release: bool = False) -> StepResult:
        """Invoke the cross-compiler once and report its exit status."""
        cmd = self.build_command(release)
        self.log.debug(shlex.join(cmd))

        result = self.process.run(cmd)
        if result.returncode != 0:
            detail = result.stderr.strip() if result.stderr else f"{cmd[0]} exited with {result.returncode}"
            return StepResult('build', result.returncode, detail)
        return StepResult('build', 0)
