"""Tests for AlacriteNode lifecycle with a fake engine."""

import asyncio

import pytest

from alacrite.config import Config
from alacrite.discovery import LocalAddressResolver, StaticAddressResolver
from alacrite.errors import AddressResolutionError, BrowseSubscriptionError, RegistrationError
from alacrite.node import AlacriteNode

from conftest import FakeEngine, FakeResolver, LOCAL_IP, resolved, removed

PEER1 = "Peer1._alacrite._tcp.local."


def make_node(engine=None, resolver=None, **overrides):
    config = Config(receive_timeout=0.05, **overrides)
    return AlacriteNode(config, engine=engine or FakeEngine(), resolver=resolver or FakeResolver())


async def wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class TestNodeConstruction:
    def test_resolver_from_config(self):
        node = AlacriteNode(Config(address="10.1.2.3"), engine=FakeEngine())
        assert isinstance(node.resolver, StaticAddressResolver)
        assert node.resolver.resolve() == "10.1.2.3"

    def test_default_resolver(self):
        node = AlacriteNode(Config(), engine=FakeEngine())
        assert isinstance(node.resolver, LocalAddressResolver)

    def test_invalid_configured_address(self):
        with pytest.raises(AddressResolutionError):
            AlacriteNode(Config(address="nope"), engine=FakeEngine())

    def test_ipv6_configured_address_is_rejected(self):
        with pytest.raises(AddressResolutionError):
            AlacriteNode(Config(address="::1"), engine=FakeEngine())


class TestNodeLifecycle:
    @pytest.mark.asyncio
    async def test_start_discover_stop(self):
        engine = FakeEngine()
        node = make_node(engine)
        changes = []
        node.on_peer_change(lambda peer, added: changes.append((peer.name, added)))

        await node.start()
        assert node.is_running
        assert node.identity.host == f"{LOCAL_IP}.local."
        assert len(engine.registered) == 1

        source = node.discovery.source
        source.put(resolved("Alacrite._alacrite._tcp.local.", f"{LOCAL_IP}.local."))
        source.put(resolved(PEER1, "192.168.1.20.local."))
        await wait_for(lambda: PEER1 in node.registry)
        assert node.get_peers() == {PEER1: "192.168.1.20.local."}

        source.put(removed(PEER1))
        await wait_for(lambda: PEER1 not in node.registry)

        await node.stop()
        assert not node.is_running
        assert engine.closed
        assert engine.unregistered == 1
        assert node.get_peers() == {}
        assert changes == [(PEER1, True), (PEER1, False)]

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self):
        engine = FakeEngine()
        node = make_node(engine)
        await node.start()
        await node.start()
        assert len(engine.registered) == 1
        await node.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        node = make_node()
        await node.stop()
        assert not node.is_running

    @pytest.mark.asyncio
    async def test_registration_failure_aborts_start(self):
        engine = FakeEngine()
        engine.fail_register = True
        node = make_node(engine)
        with pytest.raises(RegistrationError):
            await node.start()
        assert not node.is_running
        assert engine.closed
        assert engine.sources == []

    @pytest.mark.asyncio
    async def test_address_failure_aborts_start(self):
        resolver = FakeResolver()
        resolver.fail = True
        engine = FakeEngine()
        node = make_node(engine, resolver)
        with pytest.raises(AddressResolutionError):
            await node.start()
        assert engine.registered == []

    @pytest.mark.asyncio
    async def test_browse_failure_aborts_start(self):
        engine = FakeEngine()
        engine.fail_browse = True
        node = make_node(engine)
        with pytest.raises(BrowseSubscriptionError):
            await node.start()
        assert not node.is_running
        assert engine.closed

    @pytest.mark.asyncio
    async def test_listener_errors_do_not_crash_node(self):
        resolver = FakeResolver()
        node = make_node(resolver=resolver)
        await node.start()

        resolver.fail = True
        node.discovery.source.put(resolved(PEER1, "192.168.1.20.local."))
        await asyncio.sleep(0.1)
        resolver.fail = False
        node.discovery.source.put(resolved(PEER1, "192.168.1.20.local."))
        await wait_for(lambda: PEER1 in node.registry)

        assert not node._task.done()
        await node.stop()

    @pytest.mark.asyncio
    async def test_stats(self):
        node = make_node(port=9000)
        await node.start()
        node.registry.insert(PEER1, "192.168.1.20.local.")

        stats = node.get_stats()
        assert stats['running'] is True
        assert stats['service']['name'] == "Alacrite._alacrite._tcp.local."
        assert stats['service']['port'] == 9000
        assert stats['discovery']['total_peers'] == 1

        await node.stop()

    @pytest.mark.asyncio
    async def test_restart_after_stop(self):
        engine = FakeEngine()
        node = make_node(engine)

        await node.start()
        first_source = node.discovery.source
        await node.stop()
        assert first_source.closed
        assert node.discovery.source is None

        await node.start()
        source = node.discovery.source
        assert source is not first_source
        assert len(engine.registered) == 2

        source.put(resolved(PEER1, "192.168.1.20.local."))
        await wait_for(lambda: PEER1 in node.registry)
        assert not node._task.done()

        await node.stop()

    @pytest.mark.asyncio
    async def test_start_retry_after_browse_failure(self):
        engine = FakeEngine()
        engine.fail_browse = True
        node = make_node(engine)

        with pytest.raises(BrowseSubscriptionError):
            await node.start()
        assert node.identity is None
        assert engine.unregistered == 1

        engine.fail_browse = False
        await node.start()
        assert node.is_running
        assert len(engine.registered) == 2

        node.discovery.source.put(resolved(PEER1, "192.168.1.20.local."))
        await wait_for(lambda: PEER1 in node.registry)
        await node.stop()
