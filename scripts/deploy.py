#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, network_option

from deployment.chain import run_task
from deployment.options import task_options
from deployment.params import DEPLOY


@click.command(cls=ConnectedProviderCommand, name="deploy")
@network_option(required=True)
@task_options(DEPLOY)
def cli(network, **task_args):
    """
    Deploy ERC404Stake behind an upgradeable proxy, passing the mint limit to initialize.

    ape run deploy --name test --symbol TEST --network ethereum:coq:node
    """
    exit_code = run_task(DEPLOY.name, task_args)
    if exit_code:
        raise click.exceptions.Exit(exit_code)


if __name__ == "__main__":
    cli()
