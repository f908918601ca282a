"""pytest configuration and fakes for Alacrite tests.

The fakes stand in for the mDNS engine and the address resolver so the
discovery logic can be driven without touching the network. The fake
engine hands out real ZeroconfEventSource queues, which need no browser.
"""

import pytest

from alacrite.discovery import (
    ResolvedService,
    SearchStarted,
    ServiceRemoved,
    ServiceResolved,
    ZeroconfEventSource,
)
from alacrite.errors import (
    AddressResolutionError,
    BrowseSubscriptionError,
    EngineInitError,
    RegistrationError,
)

LOCAL_IP = "192.168.1.10"
PEER_IP = "192.168.1.20"
SERVICE_TYPE = "_alacrite._tcp.local."


class FakeResolver:
    def __init__(self, address=LOCAL_IP):
        self.address = address
        self.fail = False
        self.error = None
        self.calls = 0

    def resolve(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.fail:
            raise AddressResolutionError("no route")
        return self.address


class FakeEngine:
    def __init__(self, events=None, close_after=False):
        self.events = list(events or [])
        self.close_after = close_after
        self.fail_start = False
        self.fail_register = False
        self.fail_browse = False

        self.started = False
        self.closed = False
        self.registered = []
        self.unregistered = 0
        self.sources = []

    def start(self):
        if self.fail_start:
            raise EngineInitError("socket in use")
        self.started = True

    def register(self, identity):
        if self.fail_register:
            raise RegistrationError("bad name")
        self.registered.append(identity)
        return identity.fullname

    def unregister(self):
        self.unregistered += 1

    def browse(self, service_type):
        if self.fail_browse:
            raise BrowseSubscriptionError("browse refused")
        source = ZeroconfEventSource(service_type)
        source.put(SearchStarted(service_type))
        for item in self.events:
            source.put(item)
        if self.close_after:
            source.close()
        self.sources.append(source)
        return source

    def close(self):
        for source in self.sources:
            source.close()
        self.closed = True


def resolved(name, host, port=8080):
    return ServiceResolved(ResolvedService(fullname=name, host=host, port=port))


def removed(name):
    return ServiceRemoved(SERVICE_TYPE, name)


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def engine():
    return FakeEngine()
