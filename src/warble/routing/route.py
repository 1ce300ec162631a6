"""Action and ActionMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of an action path.

    Static:  ``/users``     (is_param=False)
    Param:   ``/{id}``      (is_param=True, param_name="id")
    Typed:   ``/{id:int}``  (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Action:
    """One handler a module exposes, addressed relative to its domain."""

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    name: str | None = None


@dataclass(frozen=True, slots=True)
class ActionMatch:
    """Result of a successful action match."""

    action: Action
    path_params: dict[str, str]
