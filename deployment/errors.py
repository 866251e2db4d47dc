class TaskError(Exception):
    """Base class for failures surfaced to the operator by a task invocation."""

    def __init__(self, reason: str, step: str = None):
        super().__init__(reason)
        self.reason = reason
        self.step = step

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        if self.step:
            return f"[{self.step}] {self.reason}"
        return self.reason


class InvalidAddressError(TaskError):
    """Raised when an address-typed parameter is not a well-formed address."""


class ArtifactNotFoundError(TaskError):
    """Raised when no compiled contract is registered under the requested name."""


class NetworkSubmissionError(TaskError):
    """Wraps any transport or chain rejection of a submitted step."""


class VerificationRejectedError(TaskError):
    """Raised when the block explorer refuses to verify the submitted source."""


class TypeCoercionError(TaskError):
    """Raised when a supplied parameter value cannot be coerced to its declared type."""


class UnknownParameterError(TypeCoercionError):
    """Raised when a supplied parameter is not declared on the task."""


class ParameterDefinitionError(ValueError):
    """Raised when a task declares a malformed parameter."""


class DuplicateParameterError(ParameterDefinitionError):
    """Raised when a task declares the same parameter key twice."""


class TaskNotFoundError(TaskError, ValueError):
    """Raised when no task is registered under the requested name."""
