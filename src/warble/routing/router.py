"""Per-module action router with trie-based path matching.

Each module compiles its actions into an ``ActionRouter`` the first time
it executes. Matching never raises: a miss returns ``None`` so the module
can decline and let the dispatcher try the next candidate.
"""

import re
from dataclasses import dataclass, field

from warble.errors import ConfigurationError
from warble.routing.params import CONVERTERS
from warble.routing.route import Action, ActionMatch, PathSegment

_PARAM_RE = re.compile(r"^\{(\w+)(?::(\w+))?\}$")


def parse_path(path: str) -> list[PathSegment]:
    """Parse an action path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id}"        -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/files/{rest:path}" -> [..., PathSegment("{rest:path}", param_type="path")]

    Raises ``ConfigurationError`` for an unknown converter or for a
    ``path`` parameter that is not the final segment.
    """
    segments: list[PathSegment] = []
    parts = [p for p in path.strip("/").split("/") if p]
    for index, part in enumerate(parts):
        match = _PARAM_RE.match(part)
        if match is None:
            segments.append(PathSegment(value=part))
            continue
        param_name, param_type = match.group(1), match.group(2) or "str"
        if param_type not in CONVERTERS:
            msg = f"Unknown converter {param_type!r} in action path {path!r}"
            raise ConfigurationError(msg)
        if param_type == "path" and index != len(parts) - 1:
            msg = f"'path' parameter must be the last segment in {path!r}"
            raise ConfigurationError(msg)
        segments.append(
            PathSegment(value=part, is_param=True, param_name=param_name, param_type=param_type)
        )
    return segments


@dataclass(slots=True)
class _Node:
    """A trie node. Mutable while actions are added."""

    children: dict[str, "_Node"] = field(default_factory=dict)
    params: list["_ParamEdge"] = field(default_factory=list)
    catch_all: "_ParamEdge | None" = None
    actions: dict[str, Action] = field(default_factory=dict)


@dataclass(slots=True)
class _ParamEdge:
    name: str
    regex: re.Pattern[str]
    node: _Node


class ActionRouter:
    """Maps ``(method, path)`` to a module action.

    Usage::

        router = ActionRouter()
        router.add(Action("/users/{id:int}", show_user, frozenset({"GET"})))
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_actions", "_root")

    def __init__(self) -> None:
        self._root = _Node()
        self._actions: list[Action] = []

    def add(self, action: Action) -> None:
        node = self._root
        for seg in parse_path(action.path):
            if seg.is_param and seg.param_type == "path":
                if node.catch_all is None:
                    node.catch_all = _ParamEdge(
                        name=seg.param_name or "path",
                        regex=re.compile(CONVERTERS["path"]),
                        node=_Node(),
                    )
                node = node.catch_all.node
                break
            if seg.is_param:
                pattern = f"^{CONVERTERS[seg.param_type]}$"
                edge = next(
                    (e for e in node.params if e.regex.pattern == pattern and e.name == seg.param_name),
                    None,
                )
                if edge is None:
                    edge = _ParamEdge(
                        name=seg.param_name or "",
                        regex=re.compile(pattern),
                        node=_Node(),
                    )
                    node.params.append(edge)
                node = edge.node
            else:
                node = node.children.setdefault(seg.value, _Node())

        for method in action.methods:
            if method in node.actions:
                msg = f"Duplicate action for {method} {action.path!r}"
                raise ConfigurationError(msg)
            node.actions[method] = action
        self._actions.append(action)

    @property
    def actions(self) -> tuple[Action, ...]:
        """All registered actions in registration order."""
        return tuple(self._actions)

    def match(self, method: str, path: str) -> ActionMatch | None:
        """Match a method and module-relative path. ``None`` on any miss."""
        parts = [p for p in path.strip("/").split("/") if p]
        found = self._match_node(self._root, parts, 0, {}, method.upper())
        if found is None:
            return None
        action, params = found
        return ActionMatch(action=action, path_params=params)

    def _match_node(
        self,
        node: _Node,
        parts: list[str],
        index: int,
        params: dict[str, str],
        method: str,
    ) -> tuple[Action, dict[str, str]] | None:
        if index == len(parts):
            action = node.actions.get(method)
            return (action, params) if action is not None else None

        part = parts[index]

        # 1. Static child first
        child = node.children.get(part)
        if child is not None:
            found = self._match_node(child, parts, index + 1, params, method)
            if found is not None:
                return found

        # 2. Parameter children, in registration order
        for edge in node.params:
            if edge.regex.match(part):
                found = self._match_node(
                    edge.node, parts, index + 1, {**params, edge.name: part}, method
                )
                if found is not None:
                    return found

        # 3. Catch-all consumes the rest
        if node.catch_all is not None:
            action = node.catch_all.node.actions.get(method)
            if action is not None:
                return action, {**params, node.catch_all.name: "/".join(parts[index:])}

        return None
