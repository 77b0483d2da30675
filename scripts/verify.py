import os
import time

import click

from scripts.migrate import CLICK_PROMPTS, MIGRATION_HISTORY_DIR, param_prompt
from scripts.utils import json_file, log
from scripts.utils.verify_etherscan import EtherscanError, chain_id, verify_from_manifest

# seconds between contracts, etherscan rate limits the free tier
VERIFY_DELAY = 1


@click.command()
@click.option("--silent", is_flag=True, default=False, is_eager=True, help="Run command without prompts.")
@click.option(
    "--environment",
    default=CLICK_PROMPTS["environment"]["default"],
    help=CLICK_PROMPTS["environment"]["help"],
    callback=param_prompt,
)
@click.option(
    "--network", "-n",
    default="mainnet",
    help="Network the manifest was deployed to, only `mainnet` can be verified. Defaults to `mainnet`.",
    type=CLICK_PROMPTS["network"]["type"],
    callback=param_prompt,
)
@click.option(
    "--manifest",
    default=CLICK_PROMPTS["manifest"]["default"],
    help=CLICK_PROMPTS["manifest"]["help"],
    callback=param_prompt,
)
def cli(silent, environment, network, manifest):
    """Verify deployed contracts on Etherscan"""
    network = network.lower()
    try:
        chain_id(network)
    except EtherscanError as e:
        raise click.ClickException(str(e)) from e

    manifest_path = os.path.join(MIGRATION_HISTORY_DIR, network, environment, f"{manifest}-manifest.json")
    log.h1(f"Verifying contracts from {manifest_path}")
    if not os.path.exists(manifest_path):
        raise click.ClickException(f"No manifest found at {manifest_path}")

    api_key = os.getenv("ETHERSCAN_API_KEY")
    if not api_key:
        raise click.ClickException("ETHERSCAN_API_KEY environment variable not set")

    contracts = json_file.load(manifest_path).get("contracts", {})
    failed = []
    for contract_name, contract_data in contracts.items():
        log.h2(f"Verifying {contract_name}...")
        if verify_from_manifest(
            api_key=api_key,
            contract_name=contract_name,
            manifest_data=contract_data,
            network=network,
        ):
            log.h3(f"✅ {contract_name} verified successfully")
        else:
            log.error(f"❌ {contract_name} verification failed")
            failed.append(contract_name)

        time.sleep(VERIFY_DELAY)

    if failed:
        raise click.ClickException(f"Verification failed for {', '.join(failed)}")


if __name__ == "__main__":
    cli()
