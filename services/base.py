"""
Base service class providing the shared lifecycle for bot services.
"""

import asyncio
from abc import ABC, abstractmethod

from utils.logging import get_logger


class BaseService(ABC):
    """
    Abstract base class for services owned by the ServiceContainer.

    Gives each service a named logger (``services.<name>``) and a
    single-shot initialize/shutdown lifecycle.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = get_logger(f"services.{name}")
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize the service. Ensures single initialization."""
        async with self._lock:
            if self._initialized:
                return

            self.logger.debug(f"Initializing {self.name} service")
            try:
                await self._initialize_impl()
                self._initialized = True
            except Exception as e:
                self.logger.exception(
                    "Failed to initialize %s service", self.name, exc_info=e
                )
                raise

    async def shutdown(self) -> None:
        """Shutdown the service and cleanup resources."""
        if not self._initialized:
            return

        self.logger.debug(f"Shutting down {self.name} service")
        try:
            await self._shutdown_impl()
        except Exception as e:
            self.logger.exception(
                "Error during %s service shutdown", self.name, exc_info=e
            )
        finally:
            self._initialized = False

    @abstractmethod
    async def _initialize_impl(self) -> None:
        """Subclass-specific initialization logic."""

    async def _shutdown_impl(self) -> None:
        """Subclass-specific shutdown logic. Override if needed."""
