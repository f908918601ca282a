"""
Discovery Module - Alacrite Peers on the LAN

- Advertiser: registers our own service over mDNS
- DiscoveryLoop: browses for peers and keeps the Registry current
"""

from .registry import Registry
from .address import LocalAddressResolver, StaticAddressResolver
from .events import (
    DiscoveryEvent,
    ResolvedService,
    SearchStarted,
    SearchStopped,
    ServiceFound,
    ServiceRemoved,
    ServiceResolved,
)
from .advertiser import Advertiser, ServiceIdentity, DOMAIN_LABEL, INSTANCE_LABEL
from .engine import ZeroconfEngine, ZeroconfEventSource
from .listener import DiscoveryLoop, PeerRecord, PeerCallback, parse_host_token

__all__ = [
    'Registry',
    'LocalAddressResolver',
    'StaticAddressResolver',
    'DiscoveryEvent',
    'ResolvedService',
    'SearchStarted',
    'SearchStopped',
    'ServiceFound',
    'ServiceRemoved',
    'ServiceResolved',
    'Advertiser',
    'ServiceIdentity',
    'DOMAIN_LABEL',
    'INSTANCE_LABEL',
    'ZeroconfEngine',
    'ZeroconfEventSource',
    'DiscoveryLoop',
    'PeerRecord',
    'PeerCallback',
    'parse_host_token',
]
