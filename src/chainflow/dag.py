# dag.py
from __future__ import annotations

from collections import Counter
from typing import Dict, List, Set, Tuple

from .model import Task


class GraphError(ValueError):
    """Malformed task graph (duplicate name, dangling dependency or cycle)."""


def build_dag(tasks: List[Task]) -> Tuple[Dict[str, Set[str]], Dict[str, int]]:
    """
    Index a task list as a dependency graph.

    Returns:
      dependents: task -> tasks that need it
      indegree:   task -> number of distinct tasks it needs

    Raises:
      GraphError: on duplicate names or needs that name no task in the list
    """
    counts = Counter(t.name for t in tasks)
    dupes = sorted(name for name, n in counts.items() if n > 1)
    if dupes:
        raise GraphError(f"Duplicate task names found: {dupes}")

    dangling = [
        f"{t.name} -> {need}"
        for t in tasks
        for need in dict.fromkeys(t.needs)
        if need not in counts
    ]
    if dangling:
        raise GraphError(
            f"Unknown dependencies: {', '.join(dangling)}. Known tasks: {sorted(counts)}"
        )

    dependents: Dict[str, Set[str]] = {name: set() for name in counts}
    for t in tasks:
        for need in set(t.needs):
            dependents[need].add(t.name)
    indegree = {t.name: len(set(t.needs)) for t in tasks}
    return dependents, indegree


def topo_levels(dependents: Dict[str, Set[str]], indegree: Dict[str, int]) -> List[List[str]]:
    """
    Split the graph into stages; every task's needs sit in earlier stages.

    Raises:
      GraphError: if some tasks can never become ready (a cycle)
    """
    remaining = dict(indegree)
    frontier = sorted(name for name, deg in remaining.items() if deg == 0)
    levels: List[List[str]] = []

    while frontier:
        levels.append(frontier)
        for name in frontier:
            del remaining[name]
        unlocked: Set[str] = set()
        for name in frontier:
            for child in dependents[name]:
                remaining[child] -= 1
                if remaining[child] == 0:
                    unlocked.add(child)
        frontier = sorted(unlocked)

    if remaining:
        raise GraphError(f"Task graph has a cycle. Stuck tasks: {sorted(remaining)}")
    return levels


def plan(tasks: List[Task]) -> List[List[str]]:
    """Validate `tasks` and return their execution stages."""
    return topo_levels(*build_dag(tasks))
