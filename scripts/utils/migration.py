import os
from typing import Protocol

import boa
from mergedeep import merge

from scripts.utils import json_file, log
from scripts.utils.deploy_args import DeployArgs
from scripts.utils.migration_helpers import (deployed_contracts_manifest,
                                             execute_transaction)


class Deployer(Protocol):
    """
    What a migration script needs from whoever runs it: the name of the
    network being deployed to, and a way to deploy a contract by name.
    """

    network: str

    def deploy(self, name, *args, **kwargs):
        ...


class Migration:
    def __init__(self, deploy_args: DeployArgs, files, timestamp, previous_timestamp, history_path):
        self._files = files
        self._timestamp = timestamp
        self._previous_timestamp = previous_timestamp
        self._history_path = history_path
        self._deploy_args = deploy_args
        self._count = 0
        self._transactions = []
        self._contracts = {}
        self._contract_files = {}
        self._args = {}
        self._manifest = {}
        self.gas = 0

        filename = self._manifest_filename('current')
        log.h3(f"Loading previous manifest {filename}")
        self._previous_manifest = json_file.load(filename, default={})

        if self._load_log_file():
            log.h3(f"Log file {self._log_filename()} loaded")
        else:
            log.h3(f"No previous log file: {self._log_filename()}")

    @property
    def rpc(self):
        return self._deploy_args.rpc

    @property
    def account(self):
        return self._deploy_args.sender

    @property
    def network(self):
        return self._deploy_args.network

    @property
    def blueprint(self):
        return self._deploy_args.blueprint

    @property
    def timestamp(self):
        return self._timestamp

    @property
    def log(self):
        return log

    def execute(self, transaction, *args, **kwargs):
        """
        Executes a transaction or skips if already executed.
        Returns the transaction result.
        """
        tx = self._run('', transaction, *args, **kwargs)
        self._save_log_file()

        return tx

    def deploy(self, name, *args, label=None, **kwargs):
        """
        Deploys contract with given name and args or skips if already deployed
        Returns the deployed contract.
        """
        label = label or name

        contract = self._run(name, boa.load, self._files[name], *args, name=label, **kwargs)
        return self._register_contract(name, label, contract, args)

    def get_address(self, name):
        return self._previous_manifest["contracts"][name]["address"]

    def get_contract(self, name, address=None):
        file = self._previous_manifest["contracts"][name]["file"]
        return boa.load_partial(file).at(address or self.get_address(name))

    def include_contract(self, name, address):
        self._contracts[name] = address
        self._append_manifest(name)

    def end(self):
        """
        Ends the migration. Only now is the numbered manifest written, which
        marks the migration as done for runs resuming after the latest one.
        The log file is no longer needed. Returns the gas spent.
        """
        json_file.save(self._manifest_filename(self._timestamp), merge({"contracts": {}}, self._manifest))

        if os.path.exists(self._log_filename()):
            os.remove(self._log_filename())

        log.info(f"Gas spent for migration: {self.gas}")

        return self.gas

    def _register_contract(self, name, label, contract, args):
        self._contract_files[label] = name
        self._contracts[label] = contract
        self._args[label] = list(args)
        self._append_manifest(label)
        self._save_log_file()
        return contract

    def _curr_transaction(self):
        """
        Returns the current transaction if it's been already executed.
        """
        if self._count >= len(self._transactions):
            return None
        return self._transactions[self._count]

    def _describe(self, transaction, contract_name, *args):
        if contract_name != '':
            return f"Deploying {contract_name} - {list(args)}"
        return f"{getattr(transaction, '__name__', transaction)} - {list(args)}"

    def _run(self, contract_name, transaction, *args, **kwargs):
        """
        Executes a transaction or skips if already executed.
        Returns the transaction result.
        """
        next_transaction = self._count + 1
        message = self._describe(transaction, contract_name, *args)

        log.h2(
            f"Transaction {next_transaction} for migration with timestamp {self._timestamp} - {message}"
        )

        if self._curr_transaction():
            log.h3(f"Skipping transaction {next_transaction}")
            self._count += 1
            if contract_name != '':
                return self.get_contract(kwargs['name'])
            return self._transactions[self._count - 1]

        if contract_name == '':
            kwargs['sender'] = self._deploy_args.sender.address

        tx = execute_transaction(transaction, *args, **kwargs)
        self._transactions.append(tx)

        if contract_name != '':
            log.h3(f"Contract {contract_name} deployed at {tx.address}")
        else:
            log.h3("Transaction confirmed")

        computation = getattr(tx, '_computation', None)
        if computation is not None:
            self.gas += computation.get_gas_used()

        self._count += 1
        return tx

    def _log_filename(self):
        return os.path.join(self._history_path, f"{self._timestamp}-log.json")

    def _manifest_filename(self, name):
        return os.path.join(self._history_path, f"{name}-manifest.json")

    def _append_manifest(self, contract_name):
        contracts = {contract_name: self._contracts[contract_name]}

        manifest = deployed_contracts_manifest(contracts, self._contract_files, self._args, self._files)
        merged_manifest = merge({}, self._previous_manifest, manifest)
        self._manifest = merge({}, self._manifest, manifest)
        self._previous_manifest = merged_manifest

        json_file.save(self._manifest_filename("current"), merged_manifest)

        log.h3(f"{contract_name} added to manifest")
        return merged_manifest

    def _load_log_file(self):
        if self._deploy_args.ignore_logs or not os.path.exists(self._log_filename()):
            return False
        logs = json_file.load(self._log_filename())
        self._transactions = logs["transactions"]
        return True

    def _save_log_file(self):
        json_file.save(
            self._log_filename(),
            {
                "transactions": [str(tx) for tx in self._transactions],
            },
        )
