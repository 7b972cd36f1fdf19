"""airwallex-cli — command-line client for the Airwallex payments API."""

from awx_cli.cli import execute
from awx_cli.client import AirwallexClient
from awx_cli.config import VERSION
from awx_cli.exceptions import CliError, SetupError

__all__ = [
    "VERSION",
    "AirwallexClient",
    "CliError",
    "SetupError",
    "execute",
]
