"""Minimal dependency-injection container.

Services are registered by name with a factory that receives the
container itself, so factories can resolve their own dependencies.
Registrations are either transient (factory runs on every `resolve`) or
singletons (factory runs once and the instance is cached).

A container instance is owned by the FastAPI application that created it
(`app.state.container`); there is no module-level global.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict


class ServiceNotFoundError(LookupError):
    """Raised when `resolve` is asked for a name that was never registered."""

    def __init__(self, name: str):
        super().__init__(f"Service {name} not found in container")
        self.name = name


@dataclass(frozen=True)
class ServiceRegistration:
    name: str
    factory: Callable[["Container"], Any]
    singleton: bool


class Container:
    """String-keyed service locator with transient and singleton scopes."""

    def __init__(self):
        self._services: Dict[str, ServiceRegistration] = {}
        self._singletons: Dict[str, Any] = {}
        # re-entrant: singleton factories resolve other singletons
        self._lock = threading.RLock()

    def register(self, name: str, factory: Callable[["Container"], Any]) -> "Container":
        """Register a transient service (new instance on every resolve)."""
        return self._add(name, factory, singleton=False)

    def singleton(self, name: str, factory: Callable[["Container"], Any]) -> "Container":
        """Register a singleton service (one instance per container)."""
        return self._add(name, factory, singleton=True)

    def _add(self, name: str, factory, singleton: bool) -> "Container":
        if not callable(factory):
            raise TypeError(f"Factory for {name} must be callable")
        self._services[name] = ServiceRegistration(name=name, factory=factory, singleton=singleton)
        return self

    def resolve(self, name: str) -> Any:
        """Return an instance for `name`, constructing it if needed."""
        registration = self._services.get(name)
        if registration is None:
            raise ServiceNotFoundError(name)
        if not registration.singleton:
            return registration.factory(self)
        if name in self._singletons:
            return self._singletons[name]
        with self._lock:
            # another thread may have finished construction while we waited
            if name not in self._singletons:
                self._singletons[name] = registration.factory(self)
            return self._singletons[name]

    def has(self, name: str) -> bool:
        return name in self._services

    def clear(self) -> None:
        """Drop every registration and cached instance. Intended for tests."""
        with self._lock:
            self._services.clear()
            self._singletons.clear()
