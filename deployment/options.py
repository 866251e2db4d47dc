import click

from deployment.params import TaskDefinition


def task_options(task: TaskDefinition):
    """
    Adds one --<key> option per declared task parameter. Values are passed through as
    raw text (None when omitted) so that coercion and defaults stay with the task schema.
    """

    def decorator(func):
        for spec in reversed(task.parameters):
            func = click.option(
                f"--{spec.key}",
                spec.key,
                help=f"{spec.description} [{spec.type.value}, default: {spec.default!r}]",
                type=click.STRING,
                default=None,
                required=False,
            )(func)
        return func

    return decorator
