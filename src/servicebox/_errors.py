from __future__ import annotations

from typing import Any


class ResolutionError(RuntimeError):
    pass


class ServiceNotRegisteredError(ResolutionError, LookupError):
    def __init__(self, token: Any, message: str | None = None) -> None:
        self.token = token
        self._message = message
        super().__init__(message or f"Could not find a registered service for {_describe(token)}")

    def __reduce__(self) -> tuple[Any, ...]:
        return type(self), (self.token, self._message)


class UnresolvedDependencyError(ServiceNotRegisteredError):
    """A dependency of `dependent` has no registration in the container."""

    def __init__(self, token: Any, dependent: type) -> None:
        self.dependent = dependent
        msg = (
            f"{dependent.__name__} depends on {_describe(token)}, which is not registered. "
            "Register it, or create the container with skip_unregistered_dependencies=True."
        )
        super().__init__(token, msg)

    def __reduce__(self) -> tuple[Any, ...]:
        return type(self), (self.token, self.dependent)


class UnsafeInjectionTargetError(ResolutionError, TypeError):
    """A builtin scalar type was declared as a constructor dependency."""

    def __init__(self, dependency: type, dependent: type) -> None:
        self.dependency = dependency
        self.dependent = dependent
        super().__init__(
            f"{dependent.__name__} declares a dependency on builtin {dependency.__name__}, "
            "which cannot be injected. Give the parameter a default or wrap the value in a service."
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return type(self), (self.dependency, self.dependent)


def _describe(token: Any) -> str:
    if isinstance(token, type):
        return f"type {token.__qualname__}"
    return f"token {token!r}"
