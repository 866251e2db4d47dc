import click

from deployment.params import registered_tasks


@click.command()
def cli():
    """List the deployment tasks and their parameters."""
    for task in registered_tasks():
        click.secho(f"\n{task.name}", fg="green")
        if task.description:
            click.secho(f"    {task.description}", fg="yellow")
        for index, spec in enumerate(task.parameters, start=1):
            click.secho(
                f"        {index}. --{spec.key} ({spec.type.value}, default {spec.default!r}): "
                f"{spec.description}",
                fg="cyan",
            )


if __name__ == "__main__":
    cli()
