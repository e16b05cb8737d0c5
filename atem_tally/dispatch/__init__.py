"""Outbound side: OSC addressing and the paced tally dispatcher."""

from .addressing import DEFAULT_ADDRESS_TEMPLATE, DEFAULT_STRICT_ADDRESS_TEMPLATE, TallyAddressing
from .tally_dispatcher import TallyDispatcher, TallyTransport

__all__ = [
    "DEFAULT_ADDRESS_TEMPLATE",
    "DEFAULT_STRICT_ADDRESS_TEMPLATE",
    "TallyAddressing",
    "TallyDispatcher",
    "TallyTransport",
]
