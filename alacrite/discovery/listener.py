"""
Discovery Loop

Consumes the engine's event stream for our service type and keeps the
registry in sync with what is on the network.

Per event:
    ServiceResolved, own host    -> discard
    ServiceResolved, peer host   -> upsert + notify
    ServiceRemoved               -> evict + notify
    anything else                -> discard

EventSource.receive() is a blocking call, so each receive runs in a worker
thread (asyncio.to_thread) while the task awaits it. Receives use a short
timeout so a stop request is noticed without waiting for the next event.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..errors import (
    AlacriteError,
    BrowseSubscriptionError,
    EventReceiveError,
    EventSourceClosed,
)
from .advertiser import DOMAIN_LABEL, LOCAL_SUFFIX
from .events import ServiceRemoved, ServiceResolved
from .registry import Registry

logger = logging.getLogger(__name__)

DEFAULT_RECEIVE_TIMEOUT = 1.0  # seconds


@dataclass(frozen=True)
class PeerRecord:
    """A discovered remote instance."""
    name: str
    host: str
    port: int = 0


# Callback type for peer discovery events
PeerCallback = Callable[[PeerRecord, bool], None]  # (peer, is_added)


def parse_host_token(host: str) -> Optional[str]:
    """
    Strip the ".local." marker from a host identifier.

    "192.168.1.20.local." -> "192.168.1.20". Returns None when the marker
    is missing or nothing precedes it.
    """
    token, marker, _ = host.partition(LOCAL_SUFFIX)
    if not marker or not token:
        return None
    return token


class DiscoveryLoop:
    """
    Long-running consumer of discovery events.

    The loop is the registry's only writer.
    """

    def __init__(self, registry: Registry, engine, resolver,
                 domain_label: str = DOMAIN_LABEL,
                 receive_timeout: float = DEFAULT_RECEIVE_TIMEOUT):
        """
        Args:
            registry: Registry to keep up to date
            engine: mDNS engine providing browse()
            resolver: local address resolver, consulted for every resolved event
            domain_label: Service type to browse for
            receive_timeout: Max seconds a single receive blocks
        """
        self.registry = registry
        self.engine = engine
        self.resolver = resolver
        self.domain_label = domain_label
        self.receive_timeout = receive_timeout

        self._source = None
        self._callbacks: List[PeerCallback] = []
        self.events_handled = 0

    @property
    def source(self):
        return self._source

    def on_peer_change(self, callback: PeerCallback):
        """Register a callback for peer discovery events."""
        self._callbacks.append(callback)

    async def subscribe(self):
        """
        Start browsing for our service type.

        Raises:
            BrowseSubscriptionError: if the engine refuses the browse
        """
        if self._source is not None:
            return self._source
        try:
            self._source = await asyncio.to_thread(self.engine.browse, self.domain_label)
        except BrowseSubscriptionError:
            raise
        except AlacriteError as e:
            raise BrowseSubscriptionError(str(e)) from e
        return self._source

    async def run(self, stop_event: Optional[asyncio.Event] = None):
        """
        Process events until `stop_event` is set or the source is closed.
        """
        source = await self.subscribe()
        logger.info("Starting Alacrite service listener...")

        while stop_event is None or not stop_event.is_set():
            try:
                event = await asyncio.to_thread(source.receive, self.receive_timeout)
            except EventSourceClosed:
                logger.info("Event source closed, listener exiting")
                return
            except EventReceiveError as e:
                logger.warning(f"Failed to receive discovery event: {e}")
                continue

            if event is None:
                continue

            try:
                self.handle_event(event)
            except Exception as e:
                logger.error(f"Error handling {type(event).__name__}: {e}")

    def close(self):
        """Close the event source; the next subscribe() browses afresh."""
        source, self._source = self._source, None
        if source is not None:
            source.close()

    def handle_event(self, event):
        """Classify one event and apply it to the registry."""
        self.events_handled += 1

        if isinstance(event, ServiceResolved):
            self._handle_resolved(event)
        elif isinstance(event, ServiceRemoved):
            self._handle_removed(event)
        else:
            logger.debug(f"Ignoring {type(event).__name__}")

    def _handle_resolved(self, event: ServiceResolved):
        info = event.info
        local_ip = self.resolver.resolve()

        host_ip = parse_host_token(info.host)
        if host_ip is None:
            logger.debug(f"Ignoring {info.fullname}: unusable host {info.host!r}")
            return
        if host_ip == local_ip:
            return

        self.registry.insert(info.fullname, info.host)
        logger.info(
            f"New Alacrite service discovered: {info.fullname} "
            f"(host {host_ip}, port {info.port})"
        )
        self._notify(PeerRecord(info.fullname, info.host, info.port), True)

    def _handle_removed(self, event: ServiceRemoved):
        logger.info(f"Alacrite service removed: {event.fullname}")
        host = self.registry.get(event.fullname)
        if self.registry.remove(event.fullname):
            self._notify(PeerRecord(event.fullname, host or ""), False)

    def _notify(self, peer: PeerRecord, is_added: bool):
        for callback in self._callbacks:
            try:
                callback(peer, is_added)
            except Exception as e:
                logger.error(f"Callback error: {e}")
