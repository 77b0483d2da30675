import pytest
import boa

from boa.environment import Env

from config.BluePrint import LINK_TOKEN


def pytest_addoption(parser):
    parser.addoption(
        "--network",
        action="store",
        default="development",
        choices=list(LINK_TOKEN.keys()),
        help="Network whose blueprint the deployment tests use"
    )
    parser.addoption(
        "--rpc",
        action="store",
        default=None,
        help="Fork this RPC instead of running on an in-memory evm"
    )


@pytest.fixture(scope="session")
def network(pytestconfig):
    return pytestconfig.getoption("network")


@pytest.fixture(scope="session")
def env(pytestconfig):
    rpc = pytestconfig.getoption("rpc")

    if rpc:
        with boa.fork(rpc) as env:
            yield env
        return

    with boa.set_env(Env()) as env:
        boa.env.enable_fast_mode()
        yield env


@pytest.fixture(scope="session")
def deploy3r(env):
    return env.eoa


@pytest.fixture(scope="session")
def bob(env):
    return env.generate_address("bob")
