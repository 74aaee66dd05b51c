"""
Error taxonomy for the CurveFS admin client.

- TransportError: A target could not be reached, timed out, or answered
  with something unparseable. Recoverable and reported per target.
- ControlPlaneError: The MDS rejected an operation with a status code.
  Aborts the current apply phase.
- ConfigurationError: The desired topology is ambiguous or invalid. Always
  raised to the caller, never resolved silently.

Health findings are NOT exceptions; they travel as report data.

Per project patterns:
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""


class AdminError(Exception):
    """Base exception for admin client errors."""

    pass


class TransportError(AdminError):
    """
    Raised when a remote target is unreachable or its answer is unusable.

    Attributes:
        target: Address (or address list) that was contacted
        reason: Human-readable failure description
    """

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"{target}: {reason}")


class ControlPlaneError(AdminError):
    """
    Raised when the MDS answers but refuses an operation.

    Attributes:
        code: Status code returned by the MDS (name or number)
        operation: The remote method that was rejected (e.g. "RegistServer")
        target: Entity the operation was about (e.g. "server s1")
    """

    def __init__(self, code: int | str, operation: str, target: str = "") -> None:
        self.code = code
        self.operation = operation
        self.target = target
        where = f" for {target}" if target else ""
        super().__init__(f"{operation} failed{where}: status code {code}")


class ConfigurationError(AdminError):
    """
    Raised when the desired topology cannot be used as-is.

    Collects ALL problems before raising so the operator can fix the
    file in one pass.

    Attributes:
        problems: List of human-readable problem descriptions
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__(str(self))

    def __str__(self) -> str:
        return "Invalid topology: " + "; ".join(self.problems)
