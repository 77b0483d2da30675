from config.BluePrint import LINK_TOKEN
from scripts.utils import log
from scripts.utils.migration import Deployer


def migrate(migration: Deployer):
    log.h2("Oracle")

    link_token = LINK_TOKEN.get(migration.network)
    if link_token is None:
        # still deployed, the deployer decides what an empty argument means
        log.warning(f"No LINK token address for network `{migration.network}`")

    return migration.deploy("Oracle", link_token)
