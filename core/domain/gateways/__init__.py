from .chain_gateway_interface import ChainGateway
from .notifier_interface import Notifier

__all__ = [
    "ChainGateway",
    "Notifier",
]
