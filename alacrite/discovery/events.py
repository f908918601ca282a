"""
Discovery Events

Events delivered by the mDNS engine while browsing a service type.

Only ServiceResolved and ServiceRemoved change the registry. The other
variants exist so the engine can report its progress; consumers are
expected to ignore any event type they don't handle.
"""

from dataclasses import dataclass, field
from typing import List, Union


@dataclass(frozen=True)
class ResolvedService:
    """A fully resolved remote service instance."""
    fullname: str
    host: str  # server name as reported, e.g. "192.168.1.20.local."
    port: int
    addresses: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SearchStarted:
    service_type: str


@dataclass(frozen=True)
class ServiceFound:
    """A service name was seen but not resolved yet."""
    service_type: str
    fullname: str


@dataclass(frozen=True)
class ServiceResolved:
    info: ResolvedService


@dataclass(frozen=True)
class ServiceRemoved:
    service_type: str
    fullname: str


@dataclass(frozen=True)
class SearchStopped:
    service_type: str


DiscoveryEvent = Union[
    SearchStarted,
    ServiceFound,
    ServiceResolved,
    ServiceRemoved,
    SearchStopped,
]
