import json
import time

import requests
import vyper

from scripts.utils import log

ETHERSCAN_API = "https://api.etherscan.io/v2/api"

# seconds between verification status checks, and how many checks to make
POLL_INTERVAL = 5
POLL_ATTEMPTS = 10

# ropsten, rinkeby and kovan are retired, etherscan serves none of them
EXPLORERS = {
    "mainnet": (1, "https://etherscan.io/address/"),
}

VERIFIED = "Pass - Verified"
PENDING = "Pending in queue"


class EtherscanError(Exception):
    pass


def chain_id(network: str) -> int:
    if network not in EXPLORERS:
        raise EtherscanError(f"Network `{network}` can't be verified on Etherscan")
    return EXPLORERS[network][0]


def compiler_version(solc_json: dict) -> str:
    """Vyper version recorded in the standard json input, else the installed one"""
    version = solc_json.get("compiler_version") or vyper.__version__
    return "vyper:" + version.split("+")[0].lstrip("v")


def _query(api_key, network, **params):
    params = {"chainid": chain_id(network), "apikey": api_key, "module": "contract", **params}
    return requests.get(ETHERSCAN_API, params=params).json()


def is_contract_verified(api_key: str, contract_address: str, network: str) -> bool:
    return _query(api_key, network, action="getabi", address=contract_address).get("status") == "1"


def submit_verification(api_key, contract_name, manifest_data, network):
    """Posts the contract source, returns the guid to poll or None if rejected"""
    solc_json = manifest_data["solc_json"]
    source_file = next(iter(solc_json["sources"]))

    response = requests.post(
        ETHERSCAN_API,
        params={"chainid": chain_id(network)},
        data={
            "apikey": api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "codeformat": "vyper-json",
            "sourceCode": json.dumps(solc_json),
            "contractaddress": manifest_data["address"],
            "contractname": f"{source_file}:{contract_name}",
            "compilerversion": compiler_version(solc_json),
            "constructorArguements": manifest_data.get("args", ""),
            "optimizationUsed": "1",
            "runs": "200",
            "evmversion": "",
        },
    ).json()

    if response["status"] != "1":
        log.error(f"Verification submission failed: {response['result']}")
        return None
    return response["result"]


def wait_for_verification(api_key, guid, network) -> bool:
    for _ in range(POLL_ATTEMPTS):
        time.sleep(POLL_INTERVAL)
        status = _query(api_key, network, action="checkverifystatus", guid=guid)

        if status["result"] == VERIFIED:
            return True
        if status["result"] != PENDING:
            log.error(f"Verification failed: {status['result']} {status.get('message', '')}")
            return False

    log.error("Verification timed out")
    return False


def verify_from_manifest(api_key: str, contract_name: str, manifest_data: dict, network: str) -> bool:
    """Verify one manifest entry, already verified contracts count as success"""
    chain_id(network)
    address = manifest_data["address"]
    log.info(f"Address: {address} url: {EXPLORERS[network][1]}{address}")

    if is_contract_verified(api_key, address, network):
        log.h3(f"{contract_name} is already verified")
        return True

    if not manifest_data.get("solc_json"):
        log.error(f"No source recorded for {contract_name}, skipping")
        return False

    try:
        guid = submit_verification(api_key, contract_name, manifest_data, network)
        if guid is None:
            return False

        log.h3(f"Verification submitted. GUID: {guid}")
        return wait_for_verification(api_key, guid, network)

    except requests.RequestException as e:
        log.error(f"Error during verification: {e}")
        return False
