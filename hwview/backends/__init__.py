"""Platform device enumeration backends."""

from .base import EnumerationResult, PlatformBackend, RawDescriptor
from .registry import BackendRegistry, enumerate_devices, register_backend, select_backend

# Importing the modules registers the backends
from . import iokit, null, setupapi, udev  # noqa: E402,F401

__all__ = [
    "BackendRegistry",
    "EnumerationResult",
    "PlatformBackend",
    "RawDescriptor",
    "enumerate_devices",
    "register_backend",
    "select_backend",
]
