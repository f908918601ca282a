"""
Alacrite Node - Main Controller

Orchestrates the discovery components:
- Advertiser registers the local service once at startup
- DiscoveryLoop runs as a background task and maintains the Registry
- The Registry is shared with reporting consumers (CLI, REST API)
"""

import asyncio
import logging
from typing import Dict, Optional

from .config import Config
from .errors import StartupError
from .discovery import (
    Advertiser,
    DiscoveryLoop,
    LocalAddressResolver,
    PeerCallback,
    Registry,
    ServiceIdentity,
    StaticAddressResolver,
    ZeroconfEngine,
)

logger = logging.getLogger(__name__)


class AlacriteNode:
    """
    A node advertising the Alacrite service and tracking its peers.

    Usage:
        node = AlacriteNode(config)
        await node.start()
        peers = node.get_peers()   # {fullname: host}
        await node.stop()
    """

    def __init__(self, config: Config = None, engine=None, resolver=None):
        """
        Initialize an Alacrite node.

        Args:
            config: Node configuration (uses defaults if not provided)
            engine: mDNS engine (a ZeroconfEngine if not provided)
            resolver: local address resolver (derived from config if not provided)
        """
        self.config = config or Config()

        if resolver is None:
            if self.config.address:
                resolver = StaticAddressResolver(self.config.address)
            else:
                resolver = LocalAddressResolver()

        self.engine = engine or ZeroconfEngine()
        self.resolver = resolver
        self.registry = Registry()

        self.advertiser = Advertiser(
            engine=self.engine,
            resolver=self.resolver,
            port=self.config.port,
            domain_label=self.config.domain_label,
            instance_label=self.config.instance_label,
        )

        self.discovery = DiscoveryLoop(
            registry=self.registry,
            engine=self.engine,
            resolver=self.resolver,
            domain_label=self.config.domain_label,
            receive_timeout=self.config.receive_timeout,
        )

        # State
        self._running = False
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def identity(self) -> Optional[ServiceIdentity]:
        return self.advertiser.identity

    def on_peer_change(self, callback: PeerCallback):
        """Register a callback for peer discovery events."""
        self.discovery.on_peer_change(callback)

    async def start(self):
        """
        Start the node.

        1. Register the local advertisement
        2. Subscribe to discovery events
        3. Run the discovery loop in the background

        Raises:
            StartupError: on any fatal startup failure
        """
        if self._running:
            return

        logger.info(f"Starting Alacrite node on port {self.config.port}...")

        try:
            # Engine calls block, keep them off the event loop
            await asyncio.to_thread(self.advertiser.advertise)
            await self.discovery.subscribe()
        except StartupError:
            await asyncio.to_thread(self.advertiser.withdraw)
            await asyncio.to_thread(self.engine.close)
            raise

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._listen())
        self._running = True

        logger.info("Alacrite service registered and running...")

    async def stop(self):
        """Stop the node and withdraw the advertisement."""
        if not self._running:
            return

        logger.info("Stopping Alacrite node...")
        self._running = False

        self._stop_event.set()
        # Cancelling the browser joins its thread
        await asyncio.to_thread(self.discovery.close)

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=self.config.receive_timeout + 2.0)
            except asyncio.TimeoutError:
                logger.warning("Discovery listener did not exit in time")
            self._task = None

        await asyncio.to_thread(self.advertiser.withdraw)
        await asyncio.to_thread(self.engine.close)
        self.registry.clear()

        logger.info("Alacrite node stopped")

    async def _listen(self):
        try:
            await self.discovery.run(self._stop_event)
        except Exception as e:
            logger.error(f"Error occurred while listening for services: {e}", exc_info=True)

    def get_peers(self) -> Dict[str, str]:
        """Get a snapshot of discovered peers (fullname -> host)."""
        return self.registry.snapshot()

    def get_stats(self) -> dict:
        """Get node statistics."""
        identity = self.identity
        return {
            'running': self._running,
            'service': {
                'name': self.advertiser.registered_name,
                'host': identity.host if identity else None,
                'address': identity.address if identity else None,
                'port': self.config.port,
            },
            'discovery': {
                'domain_label': self.config.domain_label,
                'total_peers': len(self.registry),
                'events_handled': self.discovery.events_handled,
            },
        }
