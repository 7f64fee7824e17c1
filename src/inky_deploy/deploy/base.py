"""
Result types shared by the builder, the SSH deployer and the driver.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class StepResult:
    """
    Outcome of one step of the deploy sequence.

    Attributes:
        name: step identifier ("clean", "build", "kill", "stage", "transfer",
            "gdbserver", "run")
        returncode: exit status of the step (0 = success)
        message: short human-readable detail for failures
        skipped: True when the step had nothing to do (e.g. no gdbserver running)
    """
    name: str
    returncode: int
    message: str = ""
    skipped: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class DeploySummary:
    """
    Everything the driver did during one invocation.

    Attributes:
        steps: step results in execution order
        gdbserver_pid: local pid of the detached ssh running gdbserver, if launched
    """
    steps: list[StepResult] = field(default_factory=list)
    gdbserver_pid: Optional[int] = None

    @property
    def returncode(self) -> int:
        """Exit status of the last step that ran (0 if nothing ran)."""
        ran = [s for s in self.steps if not s.skipped]
        return ran[-1].returncode if ran else 0

    @property
    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if not s.success]
