"""Type analysis for deriving component dependencies from constructors.

This module examines the type hints of a class constructor and decides,
parameter by parameter, whether the container should wire it. The result is
the ordered dependency list stored on a ComponentDescriptor.

Classes:
    InjectDecision: Enumeration of injection decisions (YES, NO, OPTIONAL)
    InjectResult: Detailed result of injection analysis for a parameter
    TypeAnalyzer: Analyzer turning signatures into Dependency lists

Injection Rules:
    1. Never inject parameters with non-None defaults
    2. Never inject built-in types (str, int, list, dict, etc.)
    3. Never inject generic types with parameters (list[T], dict[K, V])
    4. Optional[T] and T | None become optional dependencies on T
    5. Unions of several non-None types are rejected as ambiguous
    6. Any other class is a required dependency

Functions:
    get_type_hints_safe: Extract type hints, resolving forward references
    is_optional: Check if a type is Optional[T]
    get_optional_inner: Extract T from Optional[T]
    is_union: Check if a type is a Union of several types
    is_generic_with_args: Check if type has generic parameters
    is_builtin_type: Check if type is a Python built-in

Example:
    >>> class Service:
    ...     def __init__(self, repo: Repository, cache: Cache | None = None, retries: int = 3):
    ...         ...
    >>> TypeAnalyzer().dependencies_for(Service)
    [Dependency(target=Repository, required=True, name='repo'),
     Dependency(target=Cache, required=False, name='cache')]
"""

from __future__ import annotations

import builtins
import inspect
import types
from enum import Enum
from typing import Any, Callable, Union, get_args, get_origin

from .errors import TypeAnalysisError
from .registry import Dependency

_BUILTIN_TYPES = frozenset(
    obj for obj in vars(builtins).values() if isinstance(obj, type)
)


class InjectDecision(Enum):
    """Possible outcomes for injection analysis."""

    YES = "inject"  # Required dependency
    NO = "skip"  # Left to the parameter default
    OPTIONAL = "optional"  # Inject if available, else None


class InjectResult:
    """Result of injection analysis for a parameter."""

    def __init__(
        self,
        decision: InjectDecision,
        type_hint: Any = None,
        reason: str = "",
        inner_type: Any = None,
    ):
        self.decision = decision
        self.type_hint = type_hint
        self.reason = reason
        self.inner_type = inner_type  # For Optional[T], the T

    def __bool__(self) -> bool:
        """True if should inject."""
        return self.decision in (InjectDecision.YES, InjectDecision.OPTIONAL)

    def __repr__(self) -> str:
        return f"InjectResult({self.decision.value}, {self.type_hint}, '{self.reason}')"

    def __eq__(self, other) -> bool:
        if not isinstance(other, InjectResult):
            return False
        return (
            self.decision == other.decision
            and self.type_hint == other.type_hint
            and self.reason == other.reason
            and self.inner_type == other.inner_type
        )


class TypeAnalyzer:
    """Analyzes constructor type hints to build dependency lists."""

    def __init__(self):
        self._callable_cache: dict[Any, dict[str, InjectResult]] = {}

    def should_inject(self, param: inspect.Parameter, type_hint: Any = None) -> InjectResult:
        """Determine if a parameter should be wired by the container.

        Args:
            param: The parameter to analyze
            type_hint: Resolved type hint (uses param.annotation if None)
        """
        if type_hint is None:
            type_hint = param.annotation

        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            return InjectResult(InjectDecision.NO, type_hint, "Variadic parameter")

        # Optional[T] = None is still injectable
        if param.default is not inspect.Parameter.empty:
            if not (param.default is None and is_optional(type_hint)):
                return InjectResult(InjectDecision.NO, type_hint, "Has default value")

        if type_hint is inspect.Parameter.empty or type_hint is None:
            return InjectResult(InjectDecision.NO, type_hint, "No type annotation")

        return self._analyze_type_hint(type_hint)

    def _analyze_type_hint(self, type_hint: Any) -> InjectResult:
        if isinstance(type_hint, str):
            raise TypeAnalysisError(
                f"Cannot resolve forward reference '{type_hint}'", type_hint=type_hint
            )

        if is_optional(type_hint):
            inner = get_optional_inner(type_hint)
            if is_builtin_type(inner) or is_generic_with_args(inner):
                return InjectResult(InjectDecision.NO, type_hint, "Optional built-in type")
            return InjectResult(
                InjectDecision.OPTIONAL, type_hint, "Optional component", inner_type=inner
            )

        if is_union(type_hint):
            raise TypeAnalysisError(
                f"Ambiguous union type {type_hint}: declare a single component type",
                type_hint=type_hint,
            )

        if is_builtin_type(type_hint):
            return InjectResult(InjectDecision.NO, type_hint, "Built-in type")

        if is_generic_with_args(type_hint):
            return InjectResult(InjectDecision.NO, type_hint, "Generic type with arguments")

        if type_hint is Any or not isinstance(type_hint, type):
            return InjectResult(InjectDecision.NO, type_hint, "Not a component type")

        return InjectResult(InjectDecision.YES, type_hint, "Component type")

    def analyze_callable(self, func: Callable) -> dict[str, InjectResult]:
        """Analyze all parameters of a callable, skipping ``self``."""
        if func in self._callable_cache:
            return self._callable_cache[func]

        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            return {}

        hints = get_type_hints_safe(func)
        results = {}
        for param_name, param in signature.parameters.items():
            if param_name in ("self", "cls"):
                continue
            results[param_name] = self.should_inject(param, hints.get(param_name))

        self._callable_cache[func] = results
        return results

    def dependencies_for(self, cls: type) -> list[Dependency]:
        """Ordered dependencies of a class, derived from its ``__init__``."""
        if cls.__init__ is object.__init__:
            return []

        dependencies = []
        for param_name, result in self.analyze_callable(cls.__init__).items():
            if result.decision == InjectDecision.YES:
                dependencies.append(Dependency(result.type_hint, required=True, name=param_name))
            elif result.decision == InjectDecision.OPTIONAL:
                dependencies.append(Dependency(result.inner_type, required=False, name=param_name))
        return dependencies

    def clear_cache(self) -> None:
        self._callable_cache.clear()


def get_type_hints_safe(func: Callable) -> dict[str, Any]:
    """Get resolved type hints, falling back to raw annotations.

    Unresolvable string annotations are kept as strings so the caller can
    report them.
    """
    from typing import get_type_hints

    try:
        module = inspect.getmodule(func)
        globalns = dict(getattr(module, "__dict__", {})) if module else {}
        globalns.update(getattr(func, "__globals__", {}))
        return get_type_hints(func, globalns=globalns)
    except (NameError, AttributeError, TypeError):
        annotations = getattr(func, "__annotations__", {})
        module = inspect.getmodule(func)
        namespace = getattr(module, "__dict__", {}) if module else {}
        resolved = {}
        for name, annotation in annotations.items():
            if isinstance(annotation, str) and annotation in namespace:
                resolved[name] = namespace[annotation]
            else:
                resolved[name] = annotation
        return resolved


# Utility functions for common type checks


def _union_args(type_hint: Any) -> tuple | None:
    origin = get_origin(type_hint)
    if origin is Union or origin is types.UnionType:
        return get_args(type_hint)
    return None


def is_optional(type_hint: Any) -> bool:
    """Check if a type hint is Optional[T] (or T | None)."""
    args = _union_args(type_hint)
    return args is not None and len(args) == 2 and type(None) in args


def get_optional_inner(type_hint: Any) -> Any:
    """Get the inner type from Optional[T]."""
    if is_optional(type_hint):
        args = get_args(type_hint)
        return args[0] if args[1] is type(None) else args[1]
    return type_hint


def is_union(type_hint: Any) -> bool:
    """Check if a type hint is a Union type (excluding Optional)."""
    args = _union_args(type_hint)
    return args is not None and not is_optional(type_hint)


def is_generic_with_args(type_hint: Any) -> bool:
    """Check if a type hint is a generic type with arguments."""
    return get_origin(type_hint) is not None and len(get_args(type_hint)) > 0


def is_builtin_type(type_hint: Any) -> bool:
    """Check if a type hint is a Python built-in type."""
    return type_hint in _BUILTIN_TYPES or get_origin(type_hint) in _BUILTIN_TYPES
