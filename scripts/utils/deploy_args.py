from config.BluePrint import LINK_TOKEN, ZERO_ADDRESS, link_token


class Constants:
    ZERO_ADDRESS = ZERO_ADDRESS


class BluePrint:
    def __init__(self, network):
        self.network = network
        self.LINK_TOKEN = link_token(network)
        self.NETWORKS = tuple(LINK_TOKEN.keys())
        self.CONSTANTS = Constants

    def __repr__(self):
        return f"BluePrint(network={self.network!r}, LINK_TOKEN={self.LINK_TOKEN!r})"


class DeployArgs:
    def __init__(self, sender, network, ignore_logs, rpc):
        self.sender = sender
        self.network = network
        self.ignore_logs = ignore_logs
        self.blueprint = BluePrint(network)
        self.rpc = rpc

    def __repr__(self):
        return (
            f"DeployArgs(network={self.network!r}, rpc={self.rpc!r}, "
            f"ignore_logs={self.ignore_logs}, sender={getattr(self.sender, 'address', self.sender)})"
        )
