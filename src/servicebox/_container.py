from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, overload

from ._errors import ServiceNotRegisteredError, UnresolvedDependencyError, UnsafeInjectionTargetError
from ._metadata import DEPENDENCIES_ATTR, dependency_types, service_token


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ._metadata import TypeToken

    T = TypeVar("T")

# builtin scalars carry no constructor dependencies; asking for one is a wiring mistake
UNSAFE_DEPENDENCY_TYPES: frozenset[type] = frozenset({str, bytes, int, float, complex, bool})


class Lifetime(Enum):
    SCOPED = "scoped"
    SINGLETON = "singleton"


@dataclass(frozen=True)
class Registration:
    token: Any
    service_type: type
    factory: Callable[..., object]
    lifetime: Lifetime
    dependencies: tuple[TypeToken, ...] | None = None  # None: reflect from the class


class ServiceLookup(Protocol):
    def get_service(self, token: TypeToken) -> Any: ...

    def is_service_registered(self, token: TypeToken) -> bool: ...


class ServiceResolver:
    """Builds one registration's instance and owns its cached singleton."""

    def __init__(
        self,
        lookup: ServiceLookup,
        registration: Registration,
        *,
        skip_unregistered_dependencies: bool = False,
    ) -> None:
        self._lookup = lookup
        self._registration = registration
        self._skip_unregistered = skip_unregistered_dependencies
        self._dependencies: tuple[TypeToken, ...] | None = registration.dependencies
        self._cached_instance: object | None = None
        self._has_instance = False

    @property
    def registration(self) -> Registration:
        return self._registration

    @property
    def has_instance(self) -> bool:
        return self._has_instance

    def resolve(self) -> Any:
        reg = self._registration

        # Return cached singleton if present
        if reg.lifetime is Lifetime.SINGLETON and self._has_instance:
            return self._cached_instance

        args = [self._resolve_dependency(dep) for dep in self._dependency_types()]
        instance = reg.factory(*args)
        logger.debug("Constructed %s (%s)", reg.service_type.__qualname__, reg.lifetime.value)

        if reg.lifetime is Lifetime.SINGLETON:
            self._cached_instance = instance
            self._has_instance = True

        return instance

    def dispose(self) -> None:
        """Dispose the cached singleton, if any.

        The instance's `dispose()` runs once; the cache is cleared even when it
        raises, so the next `resolve()` always builds a fresh instance.
        """
        if not self._has_instance:
            return

        # plain attribute lookup so proxies delegating through __getattr__ are disposed too
        dispose = getattr(self._cached_instance, "dispose", None)
        try:
            if callable(dispose):
                logger.debug("Disposing %s", self._registration.service_type.__qualname__)
                dispose()
        finally:
            self._cached_instance = None
            self._has_instance = False

    def _dependency_types(self) -> tuple[TypeToken, ...]:
        if self._dependencies is None:
            self._dependencies = dependency_types(self._registration.service_type)
        return self._dependencies

    def _resolve_dependency(self, dependency: TypeToken) -> Any:
        dependent = self._registration.service_type

        if inspect.isclass(dependency) and dependency in UNSAFE_DEPENDENCY_TYPES:
            raise UnsafeInjectionTargetError(dependency, dependent)

        token = service_token(dependency)
        if self._lookup.is_service_registered(token):
            return self._lookup.get_service(token)

        if self._skip_unregistered:
            logger.debug("Skipping unregistered dependency %r of %s", token, dependent.__qualname__)
            return None

        raise UnresolvedDependencyError(token, dependent)


class ServiceContainer:
    """Minimal DI container.

    - register classes as scoped (new instance per resolution) or singleton
      (one cached instance per container)
    - resolve with positional constructor injection, recursively
    - dispose cached singletons on demand.

    Unregistered dependencies raise `UnresolvedDependencyError` unless the
    container is created with `skip_unregistered_dependencies=True`, in which
    case `None` is injected in their place.

    A custom `factory` receives only declared dependencies: the `dependencies`
    argument or `@service(dependencies=...)`, never the reflected `__init__`.
    """

    def __init__(self, *, skip_unregistered_dependencies: bool = False) -> None:
        self._resolvers: dict[Any, ServiceResolver] = {}
        self._skip_unregistered = skip_unregistered_dependencies
        self._lock = threading.RLock()

    def add_scoped(
        self,
        service_type: type,
        *,
        factory: Callable[..., object] | None = None,
        dependencies: Sequence[TypeToken] | None = None,
    ) -> ServiceContainer:
        """Register `service_type`; every resolution builds a new instance."""
        return self._add_service(service_type, Lifetime.SCOPED, factory, dependencies)

    def add_singleton(
        self,
        service_type: type,
        *,
        factory: Callable[..., object] | None = None,
        dependencies: Sequence[TypeToken] | None = None,
    ) -> ServiceContainer:
        """Register `service_type`; the first resolution is cached until collected.

        Example:
          container.add_singleton(Clock).add_scoped(Repo)
          container.add_singleton(Db, factory=lambda clock: Db("sqlite://", clock), dependencies=(Clock,))

        """
        return self._add_service(service_type, Lifetime.SINGLETON, factory, dependencies)

    @overload
    def get_service(self, token: type[T]) -> T: ...

    @overload
    def get_service(self, token: str) -> object: ...

    def get_service(self, token: TypeToken) -> object:
        with self._lock:
            resolver = self._resolvers.get(service_token(token))
            if resolver is None:
                raise ServiceNotRegisteredError(token)
            return resolver.resolve()

    def collect_singleton(self, token: TypeToken) -> None:
        """Dispose the cached instance for `token`. No-op when nothing is cached."""
        with self._lock:
            resolver = self._resolvers.get(service_token(token))
            if resolver is not None:
                resolver.dispose()

    def is_service_registered(self, token: TypeToken) -> bool:
        with self._lock:
            return service_token(token) in self._resolvers

    def _add_service(
        self,
        service_type: type,
        lifetime: Lifetime,
        factory: Callable[..., object] | None,
        dependencies: Sequence[TypeToken] | None,
    ) -> ServiceContainer:
        if not inspect.isclass(service_type):
            msg = f"Services must be registered by class, got {service_type!r}"
            raise TypeError(msg)

        if factory is not None and not callable(factory):
            msg = f"factory for {service_type.__name__} must be callable"
            raise TypeError(msg)

        if factory is not None and dependencies is None:
            # a factory has its own signature; only declared dependencies reach it
            dependencies = service_type.__dict__.get(DEPENDENCIES_ATTR, ())

        token = service_token(service_type)
        with self._lock:
            if token in self._resolvers:
                logger.debug("%r is already registered; ignoring %s registration", token, lifetime.value)
                return self

            registration = Registration(
                token=token,
                service_type=service_type,
                factory=factory or service_type,
                lifetime=lifetime,
                dependencies=tuple(dependencies) if dependencies is not None else None,
            )
            self._resolvers[token] = ServiceResolver(
                self,
                registration,
                skip_unregistered_dependencies=self._skip_unregistered,
            )
            logger.debug("Registered %r as %s", token, lifetime.value)

        return self
