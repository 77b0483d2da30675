from enum import Enum
from types import MappingProxyType


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Network(str, Enum):
    DEVELOPMENT = "development"
    TEST = "test"
    MAINNET = "mainnet"
    ROPSTEN = "ropsten"
    RINKEBY = "rinkeby"
    KOVAN = "kovan"


# networks that run against an in-memory evm unless an rpc is given
LOCAL_NETWORKS = (Network.DEVELOPMENT.value, Network.TEST.value)


# chainlink LINK token, passed to the Oracle constructor
LINK_TOKEN = MappingProxyType({
    Network.DEVELOPMENT.value: "0x514910771AF9Ca656af840dff83E8264EcF986CA",
    Network.TEST.value: "0x514910771AF9Ca656af840dff83E8264EcF986CA",
    Network.MAINNET.value: "0x514910771AF9Ca656af840dff83E8264EcF986CA",
    Network.ROPSTEN.value: "0x20fE562d797A42Dcb3399062AE9546cd06f63280",
    Network.RINKEBY.value: "0x01BE23585060835E02B77ef475b0Cc51aA1e0709",
    Network.KOVAN.value: "0xa36085F69e2889c224210F603D836748e7dC0088",
})


def link_token(network):
    # accepts a `Network` member or its raw name, None if unknown
    return LINK_TOKEN.get(getattr(network, "value", network))
