"""Deploy driver: the fixed clean → build → deploy → gdbserver → run sequence."""
from dataclasses import dataclass

from inky_deploy.core import Logger
from inky_deploy.deploy import DeploySummary, DeploymentError, SSHDeployer, StepResult
from inky_deploy.utils.build_helper import CrossBuilder
from inky_deploy.utils.config import DeployConfig


@dataclass(frozen=True)
class DeployOptions:
    """Per-invocation flags from the command line."""
    release: bool = False
    clean: bool = False
    deploy: bool = False
    run: bool = False
    gdbserver: bool = False


class DeployDriver:
    """Sequences the build and deploy steps selected by DeployOptions.

    Steps always run in the same order regardless of flag order. By default a
    failing step is reported and the sequence carries on (best-effort deploy);
    with config.strict the first failure raises DeploymentError.
    """

    def __init__(
        self,
        config: DeployConfig,
        builder: CrossBuilder,
        deployer: SSHDeployer,
        logger: Logger
    ):
        self.config = config
        self.builder = builder
        self.deployer = deployer
        self.log = logger

    def _record(self, summary: DeploySummary, result: StepResult) -> None:
        summary.steps.append(result)
        if result.success:
            return

        detail = f": {result.message}" if result.message else ""
        if self.config.strict:
            raise DeploymentError(
                f"{result.name} step failed (exit {result.returncode}){detail}",
                step=result.name,
                returncode=result.returncode
            )
        self.log.warning(f"{result.name} step failed (exit {result.returncode}){detail}")

    def execute(self, options: DeployOptions) -> DeploySummary:
        """Run the selected steps.

        Returns:
            DeploySummary; its returncode is the exit status of the last
            step that ran

        Raises:
            DeploymentError: strict mode only, on the first failing step
        """
        summary = DeploySummary()

        if options.clean:
            self.log.info(f"Cleaning {self.config.build_dir}/...")
            self._record(summary, self.builder.clean())

        mode = 'release' if options.release else 'debug'
        self.log.info(f"Building {self.config.binary} ({mode}) for {self.config.target}...")
        self._record(summary, self.builder.build(release=options.release))

        # A debug session needs the freshly built binary on the board
        deploy = options.deploy or options.gdbserver

        if deploy:
            self._record(summary, self.deployer.kill_gdbserver())

            artifact = self.builder.artifact_path(release=options.release)
            self.log.info(f"Staging {artifact} in {self.config.deploy_dir}/...")
            self._record(summary, self.deployer.stage(artifact))

            self.log.info(f"Copying {self.config.deploy_dir}/ to {self.config.host}:~")
            self._record(summary, self.deployer.transfer())

        if options.gdbserver:
            self.log.info(
                f"Starting gdbserver on {self.config.host} "
                f"(localhost:{self.config.gdb_port})"
            )
            result, handle = self.deployer.launch_gdbserver()
            if handle is not None:
                summary.gdbserver_pid = handle.pid
            self._record(summary, result)

        if options.run:
            self.log.info(f"Running {self.deployer.remote_binary} on {self.config.host}...")
            self._record(summary, self.deployer.run_remote())

        return summary
