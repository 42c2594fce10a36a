"""Service registry and the registry-backed executor.

A job row only names its service (``jobs.service_name``). Worker code
registers a handler per name at import time, usually with the
:func:`register_service` decorator, and :class:`RegistryExecutor` looks
the handler up when the job runs::

    @register_service("purge_sessions")
    def purge_sessions(context):
        return {"purged": 12}

Handlers take the resolved context mapping and return a mapping, an
``ExecutionResult`` or None. Raising marks the run failed.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from jobspine.execution.result import ExecutionResult
from jobspine.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class _Service:
    name: str
    handler: Handler
    description: str | None = None


class HandlerRegistry:
    """Service name to handler mapping; later registrations replace earlier ones."""

    def __init__(self) -> None:
        self._services: dict[str, _Service] = {}

    def register(self, name: str, handler: Handler, description: str | None = None) -> None:
        if name in self._services:
            logger.debug("service_replaced", service_name=name)
        self._services[name] = _Service(name, handler, description)

    def get(self, name: str) -> Handler:
        """Handler for ``name``; raises ``LookupError`` listing what is registered."""
        try:
            return self._services[name].handler
        except KeyError:
            raise LookupError(
                f"No handler registered for service [{name}]. "
                f"Available: {self.list_handlers() or 'none'}"
            ) from None

    def has(self, name: str) -> bool:
        return name in self._services

    def get_metadata(self, name: str) -> dict[str, Any] | None:
        service = self._services.get(name)
        if service is None:
            return None
        return {"name": service.name, "description": service.description}

    def list_handlers(self) -> list[str]:
        return sorted(self._services)

    def unregister(self, name: str) -> bool:
        return self._services.pop(name, None) is not None


@lru_cache(maxsize=1)
def get_default_registry() -> HandlerRegistry:
    """Process-wide registry used by :func:`register_service` and ``RegistryExecutor()``."""
    return HandlerRegistry()


def reset_default_registry() -> None:
    get_default_registry.cache_clear()


def register_service(name: str, registry: HandlerRegistry | None = None, description: str | None = None):
    """Register the decorated function as the handler for ``name``.

    The function's docstring is used as the description unless one is given.
    """

    def decorator(func: Handler) -> Handler:
        (registry or get_default_registry()).register(name, func, description=description or func.__doc__)
        return func

    return decorator


class RegistryExecutor:
    """Executor that runs registered handlers in-process."""

    def __init__(self, registry: HandlerRegistry | None = None) -> None:
        self.registry = registry or get_default_registry()

    def execute(self, service_name: str, context: Mapping[str, Any]) -> ExecutionResult:
        handler = self.registry.get(service_name)
        logger.debug("service_invoked", service_name=service_name, context_keys=sorted(context))
        return ExecutionResult.from_value(handler(context))


__all__ = [
    "Handler",
    "HandlerRegistry",
    "RegistryExecutor",
    "get_default_registry",
    "register_service",
    "reset_default_registry",
]
