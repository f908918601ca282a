"""
Error Types

Startup errors are fatal: the node must not browse for peers without a
registered local advertisement and an established subscription.
Per-event errors are transient and are absorbed by the discovery loop.
"""


class AlacriteError(Exception):
    """Base class for all Alacrite errors."""


class StartupError(AlacriteError):
    """A fatal error raised while bringing the node up."""


class AddressResolutionError(StartupError):
    """The local network address could not be determined."""


class EngineInitError(StartupError):
    """The mDNS engine could not be started."""


class RegistrationError(StartupError):
    """The engine rejected the local advertisement."""


class BrowseSubscriptionError(StartupError):
    """Browsing for the service type failed."""


class EventReceiveError(AlacriteError):
    """A single receive attempt on the event source failed."""


class EventSourceClosed(AlacriteError):
    """The event source has been closed and will deliver no more events."""
