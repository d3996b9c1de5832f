"""In-memory step tree built once per execution.

Workflow steps are persisted as flat rows linked by ``parent_id`` and
``next_step_id``. Before a run the rows are copied into immutable
:class:`StepNode` records and indexed so that child and successor lookups
are O(1) instead of scanning the full step list for every step.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class StepNode:
    """Detached snapshot of a workflow step."""

    id: str
    name: str
    type: str
    config: dict[str, Any] = field(default_factory=dict)
    position: int = 0
    parent_id: Optional[str] = None
    next_step_id: Optional[str] = None

    @classmethod
    def from_model(cls, step) -> "StepNode":
        """Copy a WorkflowStep ORM row."""
        return cls(
            id=step.id,
            name=step.name,
            type=step.type,
            config=dict(step.config or {}),
            position=step.position,
            parent_id=step.parent_id,
            next_step_id=step.next_step_id,
        )


class StepTree:
    """Arena of steps indexed by id with precomputed child lists."""

    def __init__(self, steps: Iterable[StepNode]):
        ordered = sorted(steps, key=lambda s: s.position)
        self._by_id: dict[str, StepNode] = {s.id: s for s in ordered}
        self._children: dict[str, list[StepNode]] = {}
        self._roots: list[StepNode] = []

        for step in ordered:
            if step.parent_id is None:
                self._roots.append(step)
            else:
                self._children.setdefault(step.parent_id, []).append(step)

    @classmethod
    def from_models(cls, steps: Iterable) -> "StepTree":
        return cls(StepNode.from_model(s) for s in steps)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, step_id: str) -> bool:
        return step_id in self._by_id

    def get(self, step_id: Optional[str]) -> Optional[StepNode]:
        if step_id is None:
            return None
        return self._by_id.get(step_id)

    @property
    def roots(self) -> list[StepNode]:
        """Top-level steps (no parent) in position order."""
        return list(self._roots)

    def children_of(self, step_id: str) -> list[StepNode]:
        """Direct children of a condition/loop step in position order."""
        return list(self._children.get(step_id, ()))

    def next_of(self, step: StepNode) -> Optional[StepNode]:
        """The explicit successor of a step, if it exists in this workflow."""
        return self.get(step.next_step_id)
