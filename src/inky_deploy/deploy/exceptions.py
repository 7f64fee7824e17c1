"""
Deployment exceptions.

Custom exceptions for deploy driver failures with actionable error messages.
"""


class DeploymentError(Exception):
    """
    Raised in strict mode when a step of the deploy sequence fails.

    Examples:
        - cross build exited non-zero
        - scp could not reach the board
        - built artifact missing when staging

    Attributes:
        step: name of the failing step (e.g. "build", "transfer")
        returncode: exit status to surface as the driver's own
    """

    def __init__(self, message: str, step: str = "", returncode: int = 1):
        super().__init__(message)
        self.step = step
        self.returncode = returncode


class InvalidOptionError(Exception):
    """
    Raised when the command line contains a token the driver does not know.

    Attributes:
        token: the offending command line token, verbatim
    """

    def __init__(self, token: str):
        super().__init__(f"Invalid option: {token}")
        self.token = token
