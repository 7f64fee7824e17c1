"""
SSHDeployer - Deploy the inky-gotchi binary to the board over SSH.

Targets: Raspberry Pi Zero W (or any ARM Linux board reachable via ssh)
Strategy: kill stale gdbserver → stage artifact locally → scp -r → optional
gdbserver launch / interactive run
"""

import shlex
from pathlib import Path
from typing import List, Optional, Tuple, Union

from inky_deploy.core import (
    COMMAND_NOT_FOUND,
    FileSystemService,
    Logger,
    ProcessExecutor,
    ProcessHandle,
)
from inky_deploy.utils.config import DeployConfig
from .base import StepResult

# pidof exits 1 when no process matched; that is not a failure
PIDOF_NO_MATCH = 1


class SSHDeployer:
    """
    Deploys via ssh/scp to a single host.

    Requirements on the board: sshd, pidof, kill, gdbserver (for --gdbserver).
    Passwordless ssh is assumed; every remote command is a separate ssh call.
    """

    def __init__(
        self,
        config: DeployConfig,
        filesystem: FileSystemService,
        process_executor: ProcessExecutor,
        logger: Logger
    ):
        """
        Initialize SSH deployer.

        Args:
            config: host, staging directory, binary name, gdb port
            filesystem: local filesystem (staging directory)
            process_executor: runs ssh/scp
            logger: user-facing output
        """
        self.config = config
        self.fs = filesystem
        self.process = process_executor
        self.log = logger
        self.host = config.host
        self.deploy_dir = config.deploy_dir

    def _ssh_cmd(self, *args: str) -> List[str]:
        """Build ssh command running args on the board."""
        return ["ssh", self.host, *args]

    def _run(self, cmd: List[str], capture_output: bool = False):
        self.log.debug(shlex.join(cmd))
        return self.process.run(cmd, capture_output=capture_output)

    @property
    def remote_binary(self) -> str:
        """Deployed binary relative to the remote home directory."""
        return f"{self.deploy_dir}/{self.config.binary}"

    def find_gdbserver_pids(self) -> Tuple[List[str], int]:
        """
        Ask the board for running gdbserver processes.

        Returns:
            (pids, returncode) where pids is empty if none are running
        """
        result = self._run(self._ssh_cmd("pidof", "gdbserver"), capture_output=True)
        pids = (result.stdout or "").split()
        return pids, result.returncode

    def kill_gdbserver(self) -> StepResult:
        """
        Kill any gdbserver left over from a previous debug session.

        A stale gdbserver keeps the old binary open and holds the gdb port.
        """
        pids, query_rc = self.find_gdbserver_pids()

        if not pids:
            if query_rc not in (0, PIDOF_NO_MATCH):
                return StepResult(
                    'kill', query_rc,
                    f"Could not query gdbserver on {self.host} (ssh exited with {query_rc})"
                )
            return StepResult('kill', 0, skipped=True)

        self.log.info(f"Killing gdb server process: {' '.join(pids)}")
        result = self._run(self._ssh_cmd("kill", "-9", *pids))
        if result.returncode != 0:
            return StepResult(
                'kill', result.returncode,
                f"kill -9 {' '.join(pids)} failed on {self.host}"
            )
        return StepResult('kill', 0)

    def stage(self, artifact: Union[str, Path]) -> StepResult:
        """
        Recreate the staging directory and copy the artifact into it.

        The directory is always removed and created fresh, so it holds
        exactly one file when transferred.
        """
        self.log.debug(f"rm -rf {self.deploy_dir} && mkdir {self.deploy_dir}")
        try:
            if self.fs.is_dir(self.deploy_dir):
                self.fs.rmtree(self.deploy_dir)
            elif self.fs.exists(self.deploy_dir):
                self.fs.remove_file(self.deploy_dir)
            self.fs.mkdir(self.deploy_dir, parents=False, exist_ok=False)
        except OSError as e:
            return StepResult('stage', 1, f"Could not recreate {self.deploy_dir}: {e}")

        self.log.debug(f"cp {artifact} {self.deploy_dir}")
        try:
            self.fs.copy_file(artifact, self.deploy_dir)
        except OSError as e:
            return StepResult(
                'stage', 1,
                f"Could not copy {artifact} into {self.deploy_dir}: {e}\n"
                f"  (did the build succeed?)"
            )
        return StepResult('stage', 0)

    def transfer(self) -> StepResult:
        """Copy the staging directory into the remote home directory."""
        cmd = ["scp", "-r", self.deploy_dir, f"{self.host}:~"]
        result = self._run(cmd)
        if result.returncode != 0:
            return StepResult(
                'transfer', result.returncode,
                f"scp to {self.host} failed (exit {result.returncode})\n"
                f"  Verify ssh access: ssh {self.host}"
            )
        return StepResult('transfer', 0)

    def launch_gdbserver(self) -> Tuple[StepResult, Optional[ProcessHandle]]:
        """
        Start gdbserver on the board, bound to localhost:<gdb_port>.

        The ssh process is fully detached (no stdin/stdout/stderr) and never
        waited on; attach with an ssh port forward to the gdb port.

        Returns:
            (StepResult, handle of the local ssh process or None)
        """
        cmd = self._ssh_cmd(
            "gdbserver", f"localhost:{self.config.gdb_port}", self.remote_binary
        )
        self.log.debug(f"{shlex.join(cmd)} &")
        try:
            handle = self.process.spawn_detached(cmd)
        except FileNotFoundError as e:
            return StepResult('gdbserver', COMMAND_NOT_FOUND, f"ssh not found: {e}"), None
        except OSError as e:
            return StepResult('gdbserver', 1, f"Could not start ssh: {e}"), None
        return StepResult('gdbserver', 0), handle

    def run_remote(self) -> StepResult:
        """Run the deployed binary on the board in the foreground."""
        remote_path = f"{self.config.remote_home}/{self.remote_binary}"
        result = self._run(self._ssh_cmd(remote_path))
        if result.returncode != 0:
            return StepResult('run', result.returncode, f"{remote_path} exited with {result.returncode}")
        return StepResult('run', 0)
