import os

import boa
import boa.deployments
import click
from boa.environment import Env

from config.BluePrint import LINK_TOKEN, LOCAL_NETWORKS
from scripts.utils import log
from scripts.utils.deploy_args import DeployArgs
from scripts.utils.migration_helpers import get_account, load_vyper_files
from scripts.utils.migration_runner import MigrationRunner


MIGRATION_SCRIPTS_DIR = "./migrations"
MIGRATION_HISTORY_DIR = "./migration_history"

FORK_FUNDING = 10 * 10**18

# testnets alchemy no longer serves, these need an explicit --rpc
RETIRED_NETWORKS = ("ropsten", "rinkeby", "kovan")


CLICK_PROMPTS = {
    "rpc": {
        "prompt": "What is the desired rpc?",
        "default": "",
        "help": "RPC url for the network to deploy to. Defaults to an in-memory evm for development and test, and alchemy for mainnet. ropsten, rinkeby and kovan are retired and need an explicit --rpc.",
    },
    "environment": {
        "prompt": "Inform the environment name",
        "default": "v1",
        "help": "Migration set to run, also the folder where its manifests are written and read. Defaults to `v1`.",
    },
    "start_timestamp": {
        "prompt": "Start timestamp",
        "default": "0",
        "help": "Timestamp at which to start running migrations. `0` resumes after the latest manifest.",
    },
    "single": {
        "prompt": "Is single migration?",
        "default": False,
        "help": "Runs only the specified migration. If false, runs all the migrations starting from the specified timestamp.",
    },
    "end_timestamp": {
        "prompt": "End timestamp",
        "default": "0",
        "help": "Last timestamp migration that will run. If none is provided, every later migration runs.",
        "depends": {
            "single": False
        }
    },
    "network": {
        "prompt": "Network name",
        "default": "development",
        "help": "Network to deploy to, selects the LINK token passed to the Oracle. Defaults to `development`.",
        "type": click.Choice(list(LINK_TOKEN.keys()), case_sensitive=False),
    },
    "account": {
        "prompt": "Deployer account name",
        "default": "DEPLOYER",
        "help": "Account name for deployment, the key is read from `<NAME>_PRIVATE_KEY`. Defaults to `DEPLOYER`",
    },
    "is_retry": {
        "prompt": "Ignore current logs (always run transactions)?",
        "default": False,
        "help": "Ignore previous log files",
    },
    "manifest": {
        "prompt": "Manifest",
        "default": "current",
        "help": "Manifest to use. Defaults to `current`.",
    },
}


def network_rpc(network, rpc=""):
    """
    RPC the migration connects to: the explicit one if given, `boa` (the
    in-memory evm) for local networks, alchemy for public ones.
    """
    if rpc:
        return rpc
    if network in LOCAL_NETWORKS:
        return "boa"
    if network in RETIRED_NETWORKS:
        log.warning(f"`{network}` is retired, alchemy has no endpoint for it. Pass --rpc.")
    return f"https://eth-{network}.g.alchemy.com/v2/{os.environ.get('WEB3_ALCHEMY_API_KEY')}"


def param_prompt(ctx, param, value):
    param_config = CLICK_PROMPTS.get(param.name)
    if param_config is None:
        return value

    default_val = param_config.get("default")
    prompt = param_config.get("prompt")

    if value != default_val:
        return value

    if prompt is None or ctx.params.get("silent"):
        return value

    depends = param_config.get("depends")
    if depends is not None and not any(
        ctx.params.get(key) == expected for key, expected in depends.items()
    ):
        return value

    return click.prompt(
        f"{prompt} --{param.name.replace('_', '-')}",
        default=default_val,
        type=param_config.get("type"),
    )


@click.command()
@click.option("--silent", is_flag=True, default=False, is_eager=True, help="Run command without prompts.")
@click.option("--fork", is_flag=True, default=False, help="Declare that the migration is running on a fork.")
@click.option(
    "--rpc",
    default=CLICK_PROMPTS["rpc"]["default"],
    help=CLICK_PROMPTS["rpc"]["help"],
    callback=param_prompt,
)
@click.option(
    "--environment",
    default=CLICK_PROMPTS["environment"]["default"],
    help=CLICK_PROMPTS["environment"]["help"],
    callback=param_prompt,
)
@click.option(
    "--start-timestamp", "-t",
    default=CLICK_PROMPTS["start_timestamp"]["default"],
    help=CLICK_PROMPTS["start_timestamp"]["help"],
    callback=param_prompt,
)
@click.option(
    "--single", "-s",
    is_flag=True,
    default=CLICK_PROMPTS["single"]["default"],
    help=CLICK_PROMPTS["single"]["help"],
    callback=param_prompt,
)
@click.option(
    "--end-timestamp", "-e",
    default=CLICK_PROMPTS["end_timestamp"]["default"],
    help=CLICK_PROMPTS["end_timestamp"]["help"],
    callback=param_prompt,
)
@click.option(
    "--network", "-n",
    default=CLICK_PROMPTS["network"]["default"],
    help=CLICK_PROMPTS["network"]["help"],
    type=CLICK_PROMPTS["network"]["type"],
    callback=param_prompt,
)
@click.option(
    "--account", "-a",
    default=CLICK_PROMPTS["account"]["default"],
    help=CLICK_PROMPTS["account"]["help"],
    callback=param_prompt,
)
@click.option(
    "--is-retry",
    is_flag=True,
    default=CLICK_PROMPTS["is_retry"]["default"],
    help=CLICK_PROMPTS["is_retry"]["help"],
    callback=param_prompt,
)
def cli(
    silent,
    fork,
    is_retry,
    rpc,
    single,
    environment,
    start_timestamp,
    end_timestamp,
    network,
    account,
):
    """
    Deploys the Oracle by running migration scripts.

    Migration scripts are located in `./migrations/<environment>`.
    Their filenames are prefixed with a numeric timestamp that sets the
    order in which the scripts are run, and determines which scripts to
    continue from in future migrations.

    Each migration records the contracts it deploys in a JSON manifest
    under `./migration_history/<network>/<environment>`, named after the
    migration timestamp. Future runs resume from the first migration
    script with a timestamp greater than that of the most recent
    manifest file. `current-manifest.json` always holds every contract
    deployed so far, so later migrations and `scripts/verify.py` can
    find previous deployments.
    """
    network = network.lower()
    final_rpc = network_rpc(network, rpc)
    sender = get_account(account)

    deploy_args = DeployArgs(sender, network, ignore_logs=is_retry, rpc=final_rpc)

    log.h1("Contract Migration")
    log.info(f"Connected to rpc `{final_rpc}`.")
    log.info(f"Deployer account `{sender.address}`.")
    log.info(f"Manifests are stored in `{environment}`.")
    log.info(f"Deployment arguments: {deploy_args}")
    log.info(f"Running migrations starting with timestamp {start_timestamp}.")
    log.info(f"Network: {network}.")
    log.info(f"Fork: {fork}.")
    log.info("")
    vyper_files = load_vyper_files()
    log.info(f"Loaded {len(vyper_files)} Vyper files.")
    log.h2("Running migrations...")

    migrations = MigrationRunner(
        os.path.join(MIGRATION_SCRIPTS_DIR, environment),
        os.path.join(MIGRATION_HISTORY_DIR, network, environment),
        vyper_files
    )

    boa.deployments.set_deployments_db(
        boa.deployments.DeploymentsDB(":memory:"))

    if final_rpc == 'boa':
        with boa.set_env(Env()) as env:
            env.eoa = sender.address
            total_gas = migrations.run(
                deploy_args, start_timestamp, end_timestamp, not single)

    elif fork:
        with boa.fork(final_rpc, allow_dirty=True) as env:
            env.set_balance(sender.address, FORK_FUNDING)
            env.eoa = sender.address
            log.h2(f'Deployer wallet funded with {FORK_FUNDING // 10**18} ETH')
            total_gas = migrations.run(
                deploy_args, start_timestamp, end_timestamp, not single)
    else:
        with boa.set_network_env(final_rpc) as env:
            env.add_account(sender)
            total_gas = migrations.run(
                deploy_args, start_timestamp, end_timestamp, not single)

    log.info(f'Total gas used: {total_gas}')

    log.info("Done.")
    log.info("")


if __name__ == "__main__":
    cli()
