"""
Local Service Advertisement

Registers this node as `<instance>._alacrite._tcp.local.` with the mDNS
engine. Registration happens once, before discovery starts: the discovery
loop recognises our own advertisement by its host, so it needs the
identity to exist first.

The host name is derived from the local address ("192.168.1.10.local."),
which is what lets peers tell instances apart without TXT properties.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import RegistrationError

logger = logging.getLogger(__name__)

DOMAIN_LABEL = "_alacrite._tcp.local."
INSTANCE_LABEL = "Alacrite"
LOCAL_SUFFIX = ".local."


@dataclass(frozen=True)
class ServiceIdentity:
    """The public identity of the local service."""
    domain_label: str
    instance_label: str
    host: str
    address: str
    port: int

    @property
    def fullname(self) -> str:
        return f"{self.instance_label}.{self.domain_label}"

    @classmethod
    def for_address(cls, address: str, port: int,
                    domain_label: str = DOMAIN_LABEL,
                    instance_label: str = INSTANCE_LABEL) -> 'ServiceIdentity':
        return cls(
            domain_label=domain_label,
            instance_label=instance_label,
            host=f"{address}{LOCAL_SUFFIX}",
            address=address,
            port=port,
        )


class Advertiser:
    """One-shot registration of the local service."""

    def __init__(self, engine, resolver, port: int,
                 domain_label: str = DOMAIN_LABEL,
                 instance_label: str = INSTANCE_LABEL):
        """
        Args:
            engine: mDNS engine (see ZeroconfEngine)
            resolver: local address resolver
            port: Port the advertised service listens on
            domain_label: Service type to advertise under
            instance_label: Instance name within the service type
        """
        self.engine = engine
        self.resolver = resolver
        self.port = port
        self.domain_label = domain_label
        self.instance_label = instance_label

        self._identity: Optional[ServiceIdentity] = None
        self._registered_name: Optional[str] = None

    @property
    def identity(self) -> Optional[ServiceIdentity]:
        return self._identity

    @property
    def registered_name(self) -> Optional[str]:
        """Name actually registered (the engine may rename on conflict)."""
        return self._registered_name

    def advertise(self) -> ServiceIdentity:
        """
        Resolve the local address, start the engine and register.

        Raises:
            AddressResolutionError: if the local address is unknown
            EngineInitError: if the engine cannot be started
            RegistrationError: if the advertisement is rejected
        """
        if self._identity is not None:
            raise RegistrationError(f"{self._identity.fullname} is already registered")

        if not 0 < self.port < 65536:
            raise RegistrationError(f"Invalid port: {self.port}")

        address = self.resolver.resolve()
        self.engine.start()

        identity = ServiceIdentity.for_address(
            address,
            self.port,
            domain_label=self.domain_label,
            instance_label=self.instance_label,
        )
        self._registered_name = self.engine.register(identity) or identity.fullname
        self._identity = identity

        logger.info(f"Advertising {self._registered_name} at {identity.host}:{identity.port}")
        return identity

    def withdraw(self):
        """Withdraw the advertisement. Failures are logged, not raised."""
        if self._identity is None:
            return
        try:
            self.engine.unregister()
        except Exception as e:
            logger.debug(f"Service unregister: {e}")
        self._identity = None
        self._registered_name = None
