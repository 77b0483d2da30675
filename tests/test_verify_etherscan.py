import json

import pytest
import vyper
from click.testing import CliRunner

from constants import KOVAN_LINK
from scripts import verify
from scripts.utils import json_file, verify_etherscan
from scripts.utils.verify_etherscan import (EtherscanError, chain_id,
                                            compiler_version,
                                            verify_from_manifest)


ORACLE_ADDRESS = "0x" + "cd" * 20

MANIFEST_ENTRY = {
    "address": ORACLE_ADDRESS,
    "solc_json": {
        "language": "Vyper",
        "sources": {"contracts/Oracle.vy": {"content": "# pragma version ^0.4.1"}},
        "compiler_version": "v0.4.3+commit.bff19ea2",
    },
    "args": "0" * 24 + KOVAN_LINK[2:].lower(),
}


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def json(self):
        return self.payload


class FakeEtherscan:
    """Replays canned etherscan answers per action"""

    def __init__(self, verified=False, submit_status="1", statuses=("Pass - Verified",)):
        self.verified = verified
        self.submit_status = submit_status
        self.statuses = list(statuses)
        self.posts = []
        self.gets = []

    def get(self, url, params=None):
        self.gets.append(params)
        if params["action"] == "getabi":
            return FakeResponse({"status": "1" if self.verified else "0", "result": "[]"})
        return FakeResponse({"status": "1", "result": self.statuses.pop(0)})

    def post(self, url, params=None, data=None):
        self.posts.append((params, data))
        return FakeResponse({"status": self.submit_status, "result": "guid-123" if self.submit_status == "1" else "Invalid API key"})


@pytest.fixture
def etherscan(monkeypatch):
    def etherscan(**kwargs):
        fake = FakeEtherscan(**kwargs)
        monkeypatch.setattr(verify_etherscan.requests, "get", fake.get)
        monkeypatch.setattr(verify_etherscan.requests, "post", fake.post)
        monkeypatch.setattr(verify_etherscan.time, "sleep", lambda _: None)
        return fake
    yield etherscan


############
# Networks #
############


def test_chain_ids():
    assert chain_id("mainnet") == 1


@pytest.mark.parametrize("network", ["development", "test", "ropsten", "rinkeby", "kovan", "unknown_net"])
def test_unsupported_networks_cannot_be_verified(network):
    with pytest.raises(EtherscanError):
        chain_id(network)


def test_compiler_version():
    assert compiler_version(MANIFEST_ENTRY["solc_json"]) == "vyper:0.4.3"
    assert compiler_version({}) == "vyper:" + vyper.__version__.split("+")[0]


################
# Verification #
################


def test_already_verified(etherscan):
    fake = etherscan(verified=True)

    assert verify_from_manifest("key", "Oracle", MANIFEST_ENTRY, "mainnet")
    assert fake.posts == []
    assert fake.gets[0]["chainid"] == 1
    assert fake.gets[0]["address"] == ORACLE_ADDRESS


def test_verification_passes_after_pending(etherscan):
    fake = etherscan(statuses=["Pending in queue", "Pending in queue", "Pass - Verified"])

    assert verify_from_manifest("key", "Oracle", MANIFEST_ENTRY, "mainnet")

    params, data = fake.posts[0]
    assert params == {"chainid": 1}
    assert data["contractaddress"] == ORACLE_ADDRESS
    assert data["contractname"] == "contracts/Oracle.vy:Oracle"
    assert data["constructorArguements"] == MANIFEST_ENTRY["args"]
    assert data["compilerversion"] == "vyper:0.4.3"
    assert json.loads(data["sourceCode"]) == MANIFEST_ENTRY["solc_json"]
    assert [g["guid"] for g in fake.gets[1:]] == ["guid-123"] * 3


def test_submission_rejected(etherscan):
    etherscan(submit_status="0")
    assert not verify_from_manifest("key", "Oracle", MANIFEST_ENTRY, "mainnet")


def test_verification_fails(etherscan):
    etherscan(statuses=["Fail - Unable to verify"])
    assert not verify_from_manifest("key", "Oracle", MANIFEST_ENTRY, "mainnet")


def test_verification_times_out(etherscan):
    etherscan(statuses=["Pending in queue"] * verify_etherscan.POLL_ATTEMPTS)
    assert not verify_from_manifest("key", "Oracle", MANIFEST_ENTRY, "mainnet")


def test_retired_network_is_rejected(etherscan):
    fake = etherscan()

    with pytest.raises(EtherscanError):
        verify_from_manifest("key", "Oracle", MANIFEST_ENTRY, "kovan")
    assert fake.gets == []


def test_missing_source_is_skipped(etherscan):
    fake = etherscan()
    entry = {"address": ORACLE_ADDRESS}

    assert not verify_from_manifest("key", "LinkToken", entry, "mainnet")
    assert fake.posts == []


#######
# Cli #
#######


def test_cli_verifies_manifest(etherscan, monkeypatch, tmp_path):
    fake = etherscan()
    monkeypatch.setenv("ETHERSCAN_API_KEY", "key")
    monkeypatch.setattr(verify, "MIGRATION_HISTORY_DIR", str(tmp_path))
    monkeypatch.setattr(verify.time, "sleep", lambda _: None)
    json_file.save(str(tmp_path / "mainnet" / "v1" / "current-manifest.json"), {"contracts": {"Oracle": MANIFEST_ENTRY}})

    result = CliRunner().invoke(verify.cli, ["--silent", "--network", "mainnet"])

    assert result.exit_code == 0, result.output
    assert len(fake.posts) == 1


@pytest.mark.parametrize("network", ["development", "kovan"])
def test_cli_rejects_unsupported_network(monkeypatch, network):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "key")

    result = CliRunner().invoke(verify.cli, ["--silent", "--network", network])

    assert result.exit_code == 1
    assert "can't be verified" in result.output


def test_cli_missing_manifest(monkeypatch, tmp_path):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "key")
    monkeypatch.setattr(verify, "MIGRATION_HISTORY_DIR", str(tmp_path))

    result = CliRunner().invoke(verify.cli, ["--silent"])

    assert result.exit_code == 1
    assert "No manifest found" in result.output


def test_cli_requires_api_key(monkeypatch, tmp_path):
    monkeypatch.delenv("ETHERSCAN_API_KEY", raising=False)
    monkeypatch.setattr(verify, "MIGRATION_HISTORY_DIR", str(tmp_path))
    json_file.save(str(tmp_path / "mainnet" / "v1" / "current-manifest.json"), {"contracts": {}})

    result = CliRunner().invoke(verify.cli, ["--silent", "--network", "mainnet"])

    assert result.exit_code == 1
    assert "ETHERSCAN_API_KEY" in result.output
