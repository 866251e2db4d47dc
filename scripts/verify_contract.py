#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, network_option

from deployment.chain import run_task
from deployment.options import task_options
from deployment.params import VERIFY_CONTRACT


@click.command(cls=ConnectedProviderCommand, name="verify-contract")
@network_option(required=True)
@task_options(VERIFY_CONTRACT)
def cli(network, **task_args):
    """Verify a deployed ERC404Stake contract on the network's block explorer."""
    exit_code = run_task(VERIFY_CONTRACT.name, task_args)
    if exit_code:
        raise click.exceptions.Exit(exit_code)


if __name__ == "__main__":
    cli()
