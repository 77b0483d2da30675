import os
import time

import dotenv
from eth_abi.abi import encode
from eth_account import Account
from vyper.compiler import compile_code

from scripts.utils import log

dotenv.load_dotenv()

# Define constants for directories
CONTRACTS_DIR = "./contracts"
INTERFACES_DIR = "./interfaces"

# well-known first account of local dev chains (anvil, hardhat)
TEST_PRIVATE_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'

RETRY_DELAY = 3


def load_vyper_files(directories=(CONTRACTS_DIR, INTERFACES_DIR)):
    """
    Load all Vyper files from the specified directories and their subdirectories.
    Returns relative paths from the current directory, keyed by contract name.
    """
    vyper_files = {}

    for directory in directories:
        if not os.path.exists(directory):
            continue

        for root, _, files in os.walk(directory):
            for file in files:
                if file.endswith('.vy'):
                    rel_path = os.path.relpath(os.path.join(root, file))
                    vyper_files[file[:-3]] = rel_path

    return vyper_files


def get_account(account_name):
    log.h1(f'Connecting to deployer account {account_name}')

    account_key = os.environ.get(f'{account_name}_PRIVATE_KEY')
    if not account_key:
        log.warning(f'{account_name}_PRIVATE_KEY is not set, using the local test key')
    account = Account.from_key(account_key if account_key else TEST_PRIVATE_KEY)
    log.h2(f'Deployer account {account_name} connected')

    return account


def execute_transaction(transaction, *args, **kwargs):
    """
    Calls `transaction(*args, **kwargs)`, retrying failed attempts.
    `max_attempts` (default 20) and `no_retry` are consumed here. The last
    exception is re-raised once every attempt has failed.
    """
    max_attempts = kwargs.pop("max_attempts", 20)
    if kwargs.pop("no_retry", False):
        max_attempts = 1

    attempts = 0
    while True:
        attempts += 1
        try:
            return transaction(*args, **kwargs)

        except Exception as exception:
            log.info(
                f"\tTransaction Failed {attempts} time{'s' if attempts > 1 else ''}"
                + ("" if attempts == max_attempts else f" (Trying again in {RETRY_DELAY} seconds)")
            )
            log.error(f"\tException: {exception}\n")
            if attempts >= max_attempts:
                log.error("\tMax attempts reached. Exiting.\n")
                raise

            time.sleep(RETRY_DELAY)


def get_vyper_abi(file_path):
    with open(file_path) as f:
        code = f.read()

    return compile_code(code, contract_path=file_path, output_formats=["abi"])["abi"]


def get_contract_abi(contract_name, contract, files):
    abi = getattr(contract, "abi", None)
    if abi:
        return abi
    return get_vyper_abi(files[contract_name])


def encode_constructor_args(abi: list, args: list) -> str:
    """
    Encode constructor arguments based on the contract's ABI
    Returns hex string without '0x' prefix
    """
    constructor = next(
        (item for item in abi if item.get('type') == 'constructor'), None)
    if not constructor or not args:
        return ""

    input_types = [input_['type'] for input_ in constructor['inputs']]

    # contract handles are encoded as their address
    processed_args = [arg.address if hasattr(arg, 'address') else arg for arg in args]

    return encode(input_types, processed_args).hex()


def deployed_contracts_manifest(contracts: dict, contract_files: dict, args: dict, files: dict):
    """
    Generate manifest file that maps each deployed contract to its address.
    Plain addresses (see `Migration.include_contract`) are stored as is.
    """
    manifest = {}

    for label, contract in contracts.items():
        if not hasattr(contract, "address"):
            manifest[label] = {
                "address": contract,
            }
            continue

        name = contract_files[label]
        abi = get_contract_abi(name, contract, files)
        deployer = getattr(contract, "deployer", None)
        manifest[label] = {
            "address": str(contract.address),
            "abi": abi,
            "solc_json": getattr(deployer, "solc_json", None),
            "args": encode_constructor_args(abi, args[label]),
            "file": files[name],
        }

    return {"contracts": manifest}
