"""
Local Address Resolution

The local address is both part of our advertised identity and the key used
to recognise our own advertisement when it comes back from the network.
It is re-resolved per event so that an address change is picked up.
"""

import ipaddress
import logging
import socket

from ..errors import AddressResolutionError

logger = logging.getLogger(__name__)

# Any routable address works; connect() on a UDP socket sends nothing
ROUTE_PROBE_ADDRESS = ("8.8.8.8", 80)


class LocalAddressResolver:
    """Determine the LAN IPv4 address from the default route."""

    def __init__(self, probe_address=ROUTE_PROBE_ADDRESS):
        self.probe_address = probe_address

    def resolve(self) -> str:
        """
        Get the local IP address.

        Raises:
            AddressResolutionError: if no route is available
        """
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
                s.connect(self.probe_address)
                ip = s.getsockname()[0]
        except OSError as e:
            raise AddressResolutionError(f"Could not determine local address: {e}") from e

        if ip == "0.0.0.0":
            raise AddressResolutionError("No local address bound to the default route")
        return ip


class StaticAddressResolver:
    """Resolver returning a fixed, configured address."""

    def __init__(self, address: str):
        try:
            self.address = str(ipaddress.IPv4Address(address))
        except ValueError as e:
            raise AddressResolutionError(f"Configured address must be IPv4: {address!r}") from e
        logger.debug(f"Using configured local address {self.address}")

    def resolve(self) -> str:
        return self.address
