"""Data models for device identity, discovered peers and session settings."""

from digilink.models.records import DeviceIdentity, RemotePeer, SessionConfig

__all__ = [
    "DeviceIdentity",
    "RemotePeer",
    "SessionConfig",
]
