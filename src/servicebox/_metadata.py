from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, get_type_hints, overload, runtime_checkable

from ._errors import ResolutionError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    T = TypeVar("T")

    TypeToken = type | str

TOKEN_ATTR = "__service_token__"
DEPENDENCIES_ATTR = "__service_dependencies__"


@runtime_checkable
class Disposable(Protocol):
    """Type hint for services that release resources when their singleton is collected."""

    def dispose(self) -> None: ...


@overload
def service(cls: type[T], /) -> type[T]: ...


@overload
def service(
    *,
    token: str | None = ...,
    dependencies: Sequence[TypeToken] | None = ...,
) -> Callable[[type[T]], type[T]]: ...


def service(
    cls: type[T] | None = None,
    /,
    *,
    token: str | None = None,
    dependencies: Sequence[TypeToken] | None = None,
) -> Any:
    """Mark a class as a service.

    Example:
      @service
      class Clock: ...

      @service(token="repo", dependencies=(Clock,))
      class Repo:
          def __init__(self, clock): ...

    Without arguments this is a marker only; dependencies are read from
    the `__init__` annotations at resolution time.
    """

    def mark(target: type[T]) -> type[T]:
        if not inspect.isclass(target):
            msg = f"@service can only decorate classes, got {target!r}"
            raise TypeError(msg)
        if token is not None:
            setattr(target, TOKEN_ATTR, token)
        if dependencies is not None:
            setattr(target, DEPENDENCIES_ATTR, tuple(dependencies))
        return target

    if cls is not None:
        return mark(cls)
    return mark


def service_token(obj: TypeToken) -> TypeToken:
    """Return the registry key for a class; anything else is already a token."""
    if not inspect.isclass(obj):
        return obj
    # only the class's own namespace: subclasses don't share a parent's token
    return obj.__dict__.get(TOKEN_ATTR, obj)


def dependency_types(service_type: type) -> tuple[TypeToken, ...]:
    """Ordered constructor dependencies of `service_type`.

    An explicit list given to `@service(dependencies=...)` wins. Otherwise every
    required positional `__init__` parameter contributes its annotation;
    parameters with defaults and variadic parameters are left to Python.
    """
    explicit = service_type.__dict__.get(DEPENDENCIES_ATTR)
    if explicit is not None:
        return tuple(explicit)

    init = inspect.getattr_static(service_type, "__init__", None)
    if init is None or not inspect.isfunction(init):
        # object.__init__ or a C-level constructor
        return ()

    sig = inspect.signature(init)
    hints = _get_init_type_hints(service_type)

    tokens: list[TypeToken] = []
    for name, p in list(sig.parameters.items())[1:]:
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            continue
        if p.default is not p.empty:
            continue

        ann = hints.get(name, p.empty)
        if p.kind is p.KEYWORD_ONLY or ann is p.empty:
            reason = "keyword-only" if p.kind is p.KEYWORD_ONLY else "no-annotation"
            msg = (
                f"Cannot satisfy constructor parameter '{name}' for {service_type.__name__} ({reason}). "
                "Annotate it, give it a default, or declare dependencies explicitly."
            )
            raise ResolutionError(msg)

        tokens.append(ann)

    return tuple(tokens)


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
