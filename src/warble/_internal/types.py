"""Shared type aliases used across warble modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Action handler: any signature, sync or async
Handler: TypeAlias = Callable[..., Any]

# Injection factory: (module, **options) -> handler
InjectionFactory: TypeAlias = Callable[..., Handler]

# Lifecycle hook: no arguments, sync or async
Hook: TypeAlias = Callable[[], Any]
