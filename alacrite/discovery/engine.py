"""
mDNS Engine

Design Decision: Callback browser vs. event channel
===================================================

zeroconf reports browse results through handler callbacks that run on the
ServiceBrowser thread. The discovery loop instead wants a stream it can
pull from in order, so the handler resolves each service and pushes a
DiscoveryEvent onto a queue. ZeroconfEventSource.receive() is the
blocking end of that queue.

Options Considered:
1. AsyncServiceBrowser + AsyncServiceInfo
   - Runs on the asyncio loop, no threads
   - Ties event ordering to task scheduling
2. ServiceBrowser + queue.Queue
   - Strict delivery order
   - receive() blocks, so it must be run in a worker thread

Decision: ServiceBrowser + queue.Queue
"""

import logging
import queue
import socket
import threading
from typing import List, Optional

from zeroconf import (
    Error as ZeroconfError,
    ServiceBrowser,
    ServiceInfo,
    ServiceStateChange,
    Zeroconf,
)

from ..errors import (
    BrowseSubscriptionError,
    EngineInitError,
    EventReceiveError,
    EventSourceClosed,
    RegistrationError,
)
from .events import (
    DiscoveryEvent,
    ResolvedService,
    SearchStarted,
    SearchStopped,
    ServiceFound,
    ServiceRemoved,
    ServiceResolved,
)

logger = logging.getLogger(__name__)

# How long to wait for SRV/A records when a service is announced (ms)
RESOLVE_TIMEOUT_MS = 3000

_CLOSED = object()


class ZeroconfEventSource:
    """Ordered stream of discovery events for one browsed service type."""

    def __init__(self, service_type: str):
        self.service_type = service_type
        self._queue: "queue.Queue" = queue.Queue()
        self._browser: Optional[ServiceBrowser] = None
        self._closed = threading.Event()

    def put(self, item):
        """Queue an event (or an EventReceiveError) for delivery."""
        if not self._closed.is_set():
            self._queue.put(item)

    def receive(self, timeout: Optional[float] = None) -> Optional[DiscoveryEvent]:
        """
        Block until the next event arrives.

        Returns:
            The next event, or None if `timeout` elapsed first

        Raises:
            EventReceiveError: if the engine failed to produce this event
            EventSourceClosed: once the source has been closed and drained
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            if self._closed.is_set():
                raise EventSourceClosed(self.service_type)
            return None

        if item is _CLOSED:
            # Keep the marker so later receive() calls also see it
            self._queue.put(_CLOSED)
            raise EventSourceClosed(self.service_type)
        if isinstance(item, EventReceiveError):
            raise item
        return item

    def attach(self, browser: ServiceBrowser):
        self._browser = browser

    def close(self):
        if self._closed.is_set():
            return
        if self._browser is not None:
            try:
                self._browser.cancel()
            except (RuntimeError, ZeroconfError) as e:
                logger.debug(f"Browser cleanup: {e}")
            self._browser = None
        self._queue.put(SearchStopped(self.service_type))
        self._queue.put(_CLOSED)
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _on_service_state_change(self, zeroconf, service_type, name, state_change):
        """ServiceBrowser handler; runs on the browser thread."""
        try:
            if state_change is ServiceStateChange.Removed:
                self.put(ServiceRemoved(service_type, name))
                return

            if state_change not in (ServiceStateChange.Added, ServiceStateChange.Updated):
                return

            self.put(ServiceFound(service_type, name))
            info = zeroconf.get_service_info(service_type, name, timeout=RESOLVE_TIMEOUT_MS)
            if info is None:
                logger.debug(f"Could not resolve {name}")
                return

            self.put(ServiceResolved(ResolvedService(
                fullname=info.name,
                host=info.server or "",
                port=info.port or 0,
                addresses=info.parsed_addresses(),
            )))
        except Exception as e:
            self.put(EventReceiveError(f"Failed to process {state_change} for {name}: {e}"))


class ZeroconfEngine:
    """
    Thin adapter exposing register/browse on top of zeroconf.

    The engine owns the Zeroconf instance, the registered ServiceInfo
    and every event source it has handed out.
    """

    def __init__(self):
        self._zeroconf: Optional[Zeroconf] = None
        self._service_info: Optional[ServiceInfo] = None
        self._sources: List[ZeroconfEventSource] = []

    @property
    def is_running(self) -> bool:
        return self._zeroconf is not None

    def start(self):
        """Start the engine. Safe to call more than once."""
        if self._zeroconf is not None:
            return
        try:
            self._zeroconf = Zeroconf()
        except (OSError, ZeroconfError) as e:
            raise EngineInitError(f"Failed to start mDNS engine: {e}") from e
        logger.debug("mDNS engine started")

    def register(self, identity):
        """Advertise `identity` (a ServiceIdentity) on the network."""
        if self._zeroconf is None:
            raise RegistrationError("mDNS engine is not running")

        try:
            info = ServiceInfo(
                identity.domain_label,
                identity.fullname,
                addresses=[socket.inet_aton(identity.address)],
                port=identity.port,
                server=identity.host,
            )
            # Instances share one instance label, let zeroconf rename on conflict
            self._zeroconf.register_service(info, allow_name_change=True)
        except (OSError, ValueError, ZeroconfError) as e:
            raise RegistrationError(f"Failed to register {identity.fullname}: {e}") from e

        self._service_info = info
        logger.info(f"Registered mDNS service: {info.name}")
        return info.name

    def unregister(self):
        if self._zeroconf is None or self._service_info is None:
            return
        self._zeroconf.unregister_service(self._service_info)
        logger.info(f"Unregistered mDNS service: {self._service_info.name}")
        self._service_info = None

    def browse(self, service_type: str) -> ZeroconfEventSource:
        """Subscribe to events for `service_type`."""
        if self._zeroconf is None:
            raise BrowseSubscriptionError("mDNS engine is not running")

        source = ZeroconfEventSource(service_type)
        source.put(SearchStarted(service_type))
        try:
            source.attach(ServiceBrowser(
                self._zeroconf,
                service_type,
                handlers=[source._on_service_state_change],
            ))
        except (RuntimeError, ValueError, ZeroconfError) as e:
            raise BrowseSubscriptionError(f"Failed to browse {service_type}: {e}") from e

        self._sources.append(source)
        logger.debug(f"Browsing for {service_type}")
        return source

    def close(self):
        """Close all event sources, withdraw the advertisement and stop."""
        for source in self._sources:
            source.close()
        self._sources.clear()

        if self._zeroconf is None:
            return
        try:
            self.unregister()
        except (RuntimeError, ZeroconfError) as e:
            logger.debug(f"Service unregister: {e}")
        self._zeroconf.close()
        self._zeroconf = None
        logger.debug("mDNS engine stopped")
