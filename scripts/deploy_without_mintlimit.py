#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, network_option

from deployment.chain import run_task
from deployment.options import task_options
from deployment.params import DEPLOY_WITHOUT_MINT_LIMIT


@click.command(cls=ConnectedProviderCommand, name="deploy-without-mintlimit")
@network_option(required=True)
@task_options(DEPLOY_WITHOUT_MINT_LIMIT)
def cli(network, **task_args):
    """
    Deploy ERC404Stake behind an upgradeable proxy.

    For contract builds whose initialize takes no mint limit argument.
    """
    exit_code = run_task(DEPLOY_WITHOUT_MINT_LIMIT.name, task_args)
    if exit_code:
        raise click.exceptions.Exit(exit_code)


if __name__ == "__main__":
    cli()
