"""
Module sequencing - the prerequisite graph over modules.

An edge Module -> Prerequisite means "must be completed first".
Answers availability, recommendation and learning-path queries, and
checks the graph for cycles and dangling references.
"""

from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from cybertrain.kernel.models.module import Module, ModuleSequence, ValidationResult
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)


class StartCheck(BaseModel):
    """Whether a learner may enter a module, and why not."""

    can_start: bool
    reason: str
    missing_prerequisites: Optional[List[str]] = None


class ModuleDependencies(BaseModel):
    prerequisites: List[Module] = Field(default_factory=list)
    dependents: List[Module] = Field(default_factory=list)


class SequencingStatistics(BaseModel):
    total_modules: int
    published_modules: int
    total_activities: int
    total_sequences: int
    average_module_duration: float
    modules_by_category: Dict[str, int]
    modules_by_difficulty: Dict[str, int]


class _Color(Enum):
    WHITE = 0  # unvisited
    GRAY = 1  # on the current DFS path
    BLACK = 2  # fully explored


def count_by(values: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


class ModuleSequencingService:
    """In-memory prerequisite graph. Single writer; no locking."""

    def __init__(self) -> None:
        self._modules: Dict[str, Module] = {}
        self._sequences: Dict[str, ModuleSequence] = {}

    def register_module(self, module: Module) -> None:
        """Insert or replace by ID."""
        self._modules[module.id] = module

    def unregister_module(self, module_id: str) -> Optional[Module]:
        return self._modules.pop(module_id, None)

    def register_sequence(self, sequence: ModuleSequence) -> None:
        self._sequences[sequence.id] = sequence

    def get_module(self, module_id: str) -> Optional[Module]:
        return self._modules.get(module_id)

    def get_sequences(self) -> List[ModuleSequence]:
        return list(self._sequences.values())

    def clear(self) -> None:
        self._modules.clear()
        self._sequences.clear()

    def get_ordered_modules(self) -> List[Module]:
        return sorted(self._modules.values(), key=lambda m: m.order)

    def get_available_modules(self, completed_module_ids: List[str]) -> List[Module]:
        """Published modules whose prerequisites are all completed, by order."""
        return [
            m for m in self.get_ordered_modules()
            if m.is_published and m.is_available(completed_module_ids)
        ]

    def get_next_recommended_module(
        self,
        completed_module_ids: List[str],
        in_progress_module_ids: Optional[List[str]] = None,
    ) -> Optional[Module]:
        """First available module that is neither completed nor in progress."""
        skip = set(completed_module_ids) | set(in_progress_module_ids or [])
        for module in self.get_available_modules(completed_module_ids):
            if module.id not in skip:
                return module
        return None

    def can_start_module(self, module_id: str, completed_module_ids: List[str]) -> StartCheck:
        module = self._modules.get(module_id)
        if module is None:
            return StartCheck(can_start=False, reason="Module not found")
        if not module.is_published:
            return StartCheck(can_start=False, reason="Module is not published")

        completed = set(completed_module_ids)
        missing = [p for p in module.prerequisites if p not in completed]
        if missing:
            return StartCheck(
                can_start=False,
                reason=f"Missing prerequisites: {', '.join(missing)}",
                missing_prerequisites=missing,
            )
        return StartCheck(can_start=True, reason="Module is available")

    def get_module_dependencies(self, module_id: str) -> ModuleDependencies:
        module = self._modules.get(module_id)
        if module is None:
            return ModuleDependencies()
        prerequisites = [self._modules[p] for p in module.prerequisites if p in self._modules]
        dependents = [m for m in self._modules.values() if module_id in m.prerequisites]
        return ModuleDependencies(prerequisites=prerequisites, dependents=dependents)

    def validate_sequence(self) -> ValidationResult:
        """
        Report every prerequisite cycle and every dangling prerequisite ID.

        Depth-first search with white/gray/black colouring; each back edge
        is one cycle, reported with its path. Iterative, so chain depth is
        bounded only by memory. Never raises.
        """
        errors: List[str] = []
        color: Dict[str, _Color] = {mid: _Color.WHITE for mid in self._modules}

        for root_id in self._modules:
            if color[root_id] is not _Color.WHITE:
                continue
            color[root_id] = _Color.GRAY
            path: List[str] = [root_id]
            stack: List[Tuple[str, Iterator[str]]] = [(root_id, iter(self._modules[root_id].prerequisites))]
            while stack:
                module_id, prereqs = stack[-1]
                for prereq_id in prereqs:
                    state = color.get(prereq_id)
                    if state is None:
                        continue  # dangling, reported below
                    if state is _Color.GRAY:
                        cycle = path[path.index(prereq_id):] + [prereq_id]
                        errors.append(
                            f"Circular dependency detected involving module: {prereq_id} "
                            f"({' -> '.join(cycle)})"
                        )
                    elif state is _Color.WHITE:
                        color[prereq_id] = _Color.GRAY
                        path.append(prereq_id)
                        stack.append((prereq_id, iter(self._modules[prereq_id].prerequisites)))
                        break
                else:
                    stack.pop()
                    path.pop()
                    color[module_id] = _Color.BLACK

        for module_id, module in self._modules.items():
            for prereq_id in module.prerequisites:
                if prereq_id not in self._modules:
                    errors.append(f"Module {module_id} has invalid prerequisite: {prereq_id}")

        if errors:
            logger.warning("Module sequence invalid", extra={"error_count": len(errors)})
        return ValidationResult(is_valid=not errors, errors=errors)

    def get_required_modules_for(self, target_module_id: str, completed_module_ids: List[str]) -> List[str]:
        """Uncompleted prerequisite closure of target, prerequisites before dependents."""
        completed = set(completed_module_ids)
        required: List[str] = []
        visited: Set[str] = set()
        stack: List[Tuple[str, Iterator[str]]] = []

        def enter(module_id: str) -> None:
            if module_id in visited or module_id in completed:
                return
            visited.add(module_id)
            module = self._modules.get(module_id)
            if module is not None:
                stack.append((module_id, iter(module.prerequisites)))

        enter(target_module_id)
        while stack:
            module_id, prereqs = stack[-1]
            prereq_id = next(prereqs, None)
            if prereq_id is None:
                stack.pop()
                required.append(module_id)
            else:
                enter(prereq_id)
        return required

    def get_learning_path(
        self,
        completed_module_ids: List[str],
        target_module_id: Optional[str] = None,
    ) -> List[Module]:
        """
        Ordered list of modules to take next.

        With a target: its uncompleted prerequisite closure, ending at the target
        (empty when the target is unknown or already completed).
        Without: repeatedly take the first available published module by order
        until nothing further unlocks.
        """
        completed = set(completed_module_ids)
        if target_module_id is not None:
            if target_module_id not in self._modules or target_module_id in completed:
                return []
            required = self.get_required_modules_for(target_module_id, completed_module_ids)
            return [self._modules[mid] for mid in required]

        path: List[Module] = []
        done = set(completed)
        remaining = [m for m in self.get_ordered_modules() if m.is_published and m.id not in done]
        while remaining:
            nxt = next((m for m in remaining if m.is_available(list(done))), None)
            if nxt is None:
                break
            path.append(nxt)
            done.add(nxt.id)
            remaining.remove(nxt)
        return path

    def get_statistics(self) -> SequencingStatistics:
        modules = list(self._modules.values())
        return SequencingStatistics(
            total_modules=len(modules),
            published_modules=sum(1 for m in modules if m.is_published),
            total_activities=sum(len(m.activities) for m in modules),
            total_sequences=len(self._sequences),
            average_module_duration=(
                sum(m.estimated_duration for m in modules) / len(modules) if modules else 0.0
            ),
            modules_by_category=count_by(m.category for m in modules),
            modules_by_difficulty=count_by(m.difficulty.value for m in modules),
        )
