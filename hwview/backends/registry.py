"""Backend registry and platform selection."""

import sys
from typing import List, Optional, Type

from ..config import BackendConfig
from ..util.logging import get_logger
from .base import EnumerationResult, PlatformBackend

logger = get_logger(__name__)


class BackendRegistry:
    """Keeps track of the backends compiled into this installation."""

    _backends: List[Type[PlatformBackend]] = []

    @classmethod
    def register(cls, backend_class: Type[PlatformBackend]) -> None:
        """Register a backend class."""
        if backend_class not in cls._backends:
            cls._backends.append(backend_class)
            logger.debug(f"Registered backend: {backend_class.name} (platform: {backend_class.platform})")

    @classmethod
    def get_all_backends(cls) -> List[Type[PlatformBackend]]:
        """All registered backends, highest priority first."""
        return sorted(cls._backends, key=lambda b: b.priority, reverse=True)

    @classmethod
    def backend_for_platform(cls, platform: str) -> Optional[Type[PlatformBackend]]:
        for backend_class in cls.get_all_backends():
            if backend_class.matches_platform(platform):
                return backend_class
        return None


def register_backend(backend_class: Type[PlatformBackend]) -> Type[PlatformBackend]:
    """Decorator to register a backend class."""
    BackendRegistry.register(backend_class)
    return backend_class


def select_backend(config: Optional[BackendConfig] = None, platform: Optional[str] = None) -> PlatformBackend:
    """Instantiate the single backend for this platform.

    Unsupported platforms get a backend that enumerates nothing.
    """
    from .null import NullBackend

    config = config or BackendConfig()
    platform = platform or config.force or sys.platform

    backend_class = BackendRegistry.backend_for_platform(platform)
    if backend_class is None:
        logger.debug(f"No device backend for platform {platform}")
        return NullBackend(config)
    return backend_class(config)


def enumerate_devices(backend: Optional[PlatformBackend] = None) -> EnumerationResult:
    """Run one enumeration pass with ``backend`` (or the platform default)."""
    if backend is None:
        from ..config import get_config

        backend = select_backend(get_config().backend)
    return backend.enumerate()
