import click

from deployment.constants import CONTRACT_NAME, VERIFY_TASK
from deployment.tasks import Outcome


def _format(outcome: Outcome) -> str:
    if outcome.succeeded:
        action = "verified" if outcome.task == VERIFY_TASK else "deployed"
        return f"{CONTRACT_NAME} {action}: {outcome.result.contract_address}"

    error = outcome.error
    if error is None:
        return f"{outcome.task} {outcome.state.value} without a reported error"
    step = getattr(error, "step", None) or "unknown step"
    reason = getattr(error, "reason", None) or str(error)
    return f"{outcome.task} {outcome.state.value} at {step}: {type(error).__name__}: {reason}"


def report(outcome: Outcome) -> int:
    """Prints the terminal outcome of a task. Returns the process exit code."""
    try:
        message = _format(outcome)
    except Exception as e:
        message = f"{outcome!r} (unprintable: {e})"

    try:
        if outcome.succeeded:
            click.secho(message, fg="green")
        else:
            click.secho(message, fg="red", err=True)
    except (OSError, ValueError):
        pass  # closed stream, or one that cannot encode the message

    return 0 if outcome.succeeded else 1
