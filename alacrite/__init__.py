"""
Alacrite - LAN service advertisement and peer discovery over mDNS.
"""

__version__ = "0.1.0"
