"""Source connectors for external opportunity feeds."""
from .base import Connector, RawListing
from .greenhouse_connector import GreenhouseConnector
from .remotive_connector import RemotiveConnector
from .themuse_connector import TheMuseConnector

__all__ = [
    "Connector",
    "RawListing",
    "RemotiveConnector",
    "TheMuseConnector",
    "GreenhouseConnector",
    "default_connectors",
]


def default_connectors(greenhouse_boards: list[str]) -> list[Connector]:
    """Connectors registered at startup, in dedup priority order."""
    return [
        TheMuseConnector(),
        RemotiveConnector(),
        GreenhouseConnector(boards=greenhouse_boards),
    ]
