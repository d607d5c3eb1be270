"""
registry.resolver:
    Expand requested components into a dependency-first install order
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Iterable, Union

from kitn.exceptions import CycleError
from kitn.models import RegistryItem
from kitn.refs import ComponentRef, parse_component_ref

FetchItemFn = Callable[[ComponentRef], Awaitable[RegistryItem]]


class VisitState(Enum):
    UNVISITED = "unvisited"
    IN_PROGRESS = "in-progress"
    DONE = "done"


@dataclass(frozen=True)
class ResolvedComponent:
    """A registry item scheduled for installation."""
    ref: ComponentRef
    item: RegistryItem
    requested: bool

    @property
    def key(self) -> str:
        return self.ref.key


@dataclass
class _Frame:
    ref: ComponentRef
    item: RegistryItem
    deps: list[ComponentRef] = field(default_factory=list)
    next_dep: int = 0


def _as_ref(ref: Union[ComponentRef, str]) -> ComponentRef:
    if isinstance(ref, ComponentRef):
        return ref
    return parse_component_ref(ref)


async def resolve_dependencies(
    roots: Iterable[Union[ComponentRef, str]],
    fetch_item: FetchItemFn,
) -> list[ResolvedComponent]:
    """
    Resolve roots and their registry dependencies.

    Every component appears once, after all of its registry dependencies.
    Roots are walked left to right and dependencies in document order, so the
    first path that reaches a shared dependency fixes its position.

    Args:
        roots: Requested components
        fetch_item: Coroutine returning the descriptor for a reference

    Returns:
        Resolved components in install order

    Raises:
        CycleError: If a component depends on itself, directly or not.
    """
    root_refs = [_as_ref(root) for root in roots]
    requested = {ref.key for ref in root_refs}
    state: dict[str, VisitState] = {}
    order: list[ResolvedComponent] = []

    async def enter(ref: ComponentRef) -> _Frame:
        state[ref.key] = VisitState.IN_PROGRESS
        item = await fetch_item(ref)
        deps = [parse_component_ref(dep) for dep in item.registry_dependencies]
        return _Frame(ref=ref, item=item, deps=deps)

    for root_ref in root_refs:
        if state.get(root_ref.key, VisitState.UNVISITED) is VisitState.DONE:
            continue

        stack = [await enter(root_ref)]
        while stack:
            frame = stack[-1]
            if frame.next_dep < len(frame.deps):
                dep = frame.deps[frame.next_dep]
                frame.next_dep += 1

                dep_state = state.get(dep.key, VisitState.UNVISITED)
                if dep_state is VisitState.IN_PROGRESS:
                    keys = [f.ref.key for f in stack]
                    raise CycleError(keys[keys.index(dep.key):] + [dep.key])
                if dep_state is VisitState.DONE:
                    continue
                stack.append(await enter(dep))
                continue

            stack.pop()
            state[frame.ref.key] = VisitState.DONE
            order.append(
                ResolvedComponent(frame.ref, frame.item, frame.ref.key in requested)
            )

    return order
