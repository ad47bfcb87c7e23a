"""Minimal dependency injection container.

This package provides a small service container for Python: register classes
with a scoped or singleton lifetime, resolve them with their constructor
dependencies injected recursively, and dispose cached singletons on demand.

Exports:
- `ServiceContainer`: Registry of services; registration, resolution and disposal.
- `ServiceResolver`: Per-registration builder that owns the cached singleton.
- `Lifetime`: Enum for controlling instance reuse (scoped or singleton).
- `service`: Marker decorator; optionally sets an explicit token or dependency list.
- `Disposable`: Protocol for instances that release resources when collected.
"""

from ._container import Lifetime, Registration, ServiceContainer, ServiceResolver
from ._errors import (
    ResolutionError,
    ServiceNotRegisteredError,
    UnresolvedDependencyError,
    UnsafeInjectionTargetError,
)
from ._metadata import Disposable, dependency_types, service, service_token


__all__ = [
    "Disposable",
    "Lifetime",
    "Registration",
    "ResolutionError",
    "ServiceContainer",
    "ServiceNotRegisteredError",
    "ServiceResolver",
    "UnresolvedDependencyError",
    "UnsafeInjectionTargetError",
    "dependency_types",
    "service",
    "service_token",
]
