from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from .lifetime import Lifetime
from ..errors import CircularDependencyError, ResolutionError


@dataclass
class Registration:
    interface: Type
    implementation: Optional[Type] = None
    lifetime: Lifetime = Lifetime.TRANSIENT
    factory: Optional[Callable[["Container"], Any]] = None
    kwargs: Dict[str, Any] = field(default_factory=dict)


def _type_name(interface: Type) -> str:
    return getattr(interface, "__qualname__", repr(interface))


class Scope:
    """Caches SCOPED registrations until :meth:`dispose`.

    Usable as a context manager; leaving the block disposes the scope.
    """

    def __init__(self, container: Container):
        self._container = container
        self._instances: Dict[Type, Any] = {}

    def resolve(self, interface: Type) -> Any:
        return self._container._resolve(interface, self)

    def dispose(self):
        instances = list(self._instances.values())
        self._instances.clear()
        for instance in instances:
            dispose = getattr(instance, "dispose", None)
            if callable(dispose):
                dispose()

    def __enter__(self) -> Scope:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()


class Container:
    """Type-keyed service registry filled by :func:`reach.di.bootstrap`.

    Factories receive the container so they can resolve their own
    dependencies.  SCOPED registrations resolved outside a :class:`Scope`
    behave like TRANSIENT ones.
    """

    def __init__(self):
        self._registrations: Dict[Type, Registration] = {}
        self._singletons: Dict[Type, Any] = {}
        self._resolving: List[Type] = []

    # --- Registration ---

    def register_singleton(self, interface: Type, implementation: Optional[Type] = None, **kwargs):
        self._add(Registration(interface, implementation or interface, Lifetime.SINGLETON, kwargs=kwargs))

    def register_transient(self, interface: Type, implementation: Optional[Type] = None, **kwargs):
        self._add(Registration(interface, implementation or interface, Lifetime.TRANSIENT, kwargs=kwargs))

    def register_scoped(self, interface: Type, implementation: Optional[Type] = None, **kwargs):
        self._add(Registration(interface, implementation or interface, Lifetime.SCOPED, kwargs=kwargs))

    def register_factory(
        self,
        interface: Type,
        factory: Callable[[Container], Any],
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ):
        self._add(Registration(interface, lifetime=lifetime, factory=factory))

    def register_instance(self, interface: Type, instance: Any):
        self._add(Registration(interface, type(instance), Lifetime.SINGLETON))
        self._singletons[interface] = instance

    def is_registered(self, interface: Type) -> bool:
        return interface in self._registrations

    # --- Resolution ---

    def resolve(self, interface: Type) -> Any:
        return self._resolve(interface, None)

    def create_scope(self) -> Scope:
        return Scope(self)

    def _add(self, registration: Registration):
        # Re-registering replaces any instance built from the old registration.
        self._singletons.pop(registration.interface, None)
        self._registrations[registration.interface] = registration

    def _resolve(self, interface: Type, scope: Optional[Scope]) -> Any:
        reg = self._registrations.get(interface)
        if reg is None:
            raise ResolutionError(f"Nothing registered for {_type_name(interface)}")

        cache = self._cache_for(reg, scope)
        if cache is not None and interface in cache:
            return cache[interface]

        if interface in self._resolving:
            chain = " -> ".join(_type_name(t) for t in (*self._resolving, interface))
            raise CircularDependencyError(f"Circular dependency: {chain}")
        self._resolving.append(interface)
        try:
            if reg.factory is not None:
                instance = reg.factory(self)
            else:
                instance = reg.implementation(**reg.kwargs)
        finally:
            self._resolving.pop()

        if cache is not None:
            cache[interface] = instance
        return instance

    def _cache_for(self, reg: Registration, scope: Optional[Scope]) -> Optional[Dict[Type, Any]]:
        if reg.lifetime is Lifetime.SINGLETON:
            return self._singletons
        if reg.lifetime is Lifetime.SCOPED and scope is not None:
            return scope._instances
        return None
