# src/chainflow/dsl.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from .model import Task


# ---------------------------------------------------------------------
# Task helper
# ---------------------------------------------------------------------

def task(
    name: str,
    run: Callable[[Dict[str, Any]], Any],
    *,
    needs: Optional[List[str]] = None,
) -> Task:
    """Create a task. `run(deps)` receives {dependency name -> result}."""
    if not callable(run):
        raise TypeError(f"task({name!r}) run must be callable, got {type(run).__name__}")
    return Task(name=name, run=run, needs=list(needs or []))


def step(name: str, fn: Callable[[Any], Any]) -> Task:
    """
    A pipeline step: a task whose work takes the previous step's result.
    Dependencies are filled in by `pipeline()`.
    """
    return Task(name=name, run=_single_input(fn))


def _single_input(fn: Callable[[Any], Any]) -> Callable[[Dict[str, Any]], Any]:
    def run(deps: Dict[str, Any]) -> Any:
        previous = next(iter(deps.values()), None)
        return fn(previous)

    return run


# ---------------------------------------------------------------------
# Graph helpers
# ---------------------------------------------------------------------

def graph(*tasks: Task) -> List[Task]:
    """
    Graph definition helper.

        graph(
            task("a", fetch),
            task("b", build, needs=["a"]),
        )
    """
    return list(tasks)


def pipeline(*steps: Task) -> List[Task]:
    """
    Strict sequential pipeline: each step needs exactly the one before it.
    The first step receives None.
    """
    out: List[Task] = []
    prev: Optional[str] = None
    for s in steps:
        out.append(Task(name=s.name, run=s.run, needs=[prev] if prev else []))
        prev = s.name
    return out
