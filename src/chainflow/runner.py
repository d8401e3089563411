# runner.py
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .dag import build_dag, topo_levels
from .model import Task
from .ui.console import get_console


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass(eq=False)
class TaskFailure(Exception):
    """
    First failure of a run, tagged with the task that produced it.

    The underlying exception is kept in `error` and chained as __cause__.
    """
    task: str
    error: BaseException

    def __str__(self) -> str:
        kind = type(self.error).__name__
        return f"[{self.task}] {kind}: {self.error}"


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _run_task(task: Task, deps: Dict[str, Any]) -> Any:
    get_console().print_task_start(task.name)
    return task.run(deps)


def default_workers(tasks: List[Task]) -> int:
    # one thread per task: a ready task never waits for a free worker
    return max(1, len(tasks))


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_graph(
    tasks: List[Task],
    *,
    max_workers: Optional[int] = None,
    print_plan: bool = False,
) -> Dict[str, Any]:
    """
    Run a task graph and return {task name -> result}.

    - Validates the whole graph first (GraphError, nothing runs).
    - A task is submitted once all of its dependencies succeeded; independent
      tasks run concurrently on the thread pool.
    - On first failure no new task is scheduled. Tasks already in flight are
      left to finish and their results are discarded; then TaskFailure is raised.
    """
    console = get_console()
    by_name = {t.name: t for t in tasks}

    adj, indeg = build_dag(tasks)
    levels = topo_levels(adj, indeg)
    if print_plan:
        console.print_plan(levels)

    indeg = dict(indeg)
    ready: List[str] = sorted(name for name, deg in indeg.items() if deg == 0)
    results: Dict[str, Any] = {}
    failure: Optional[TaskFailure] = None

    if max_workers is None:
        max_workers = default_workers(tasks)

    in_flight: Dict[Future, str] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        while ready or in_flight:
            # schedule all currently ready
            while ready and failure is None:
                name = ready.pop(0)
                task = by_name[name]
                deps = {d: results[d] for d in task.needs}
                fut = pool.submit(_run_task, task, deps)
                in_flight[fut] = name

            if not in_flight:
                break

            # wait for one completion, then loop to schedule newly-ready tasks
            fut = next(as_completed(list(in_flight.keys())))
            name = in_flight.pop(fut)

            try:
                value = fut.result()
            except Exception as e:
                if failure is None:
                    console.print_task_failed(name, str(e))
                    failure = TaskFailure(task=name, error=e)
                    failure.__cause__ = e
                continue

            if failure is not None:
                console.print_task_discarded(name)
                continue

            results[name] = value
            console.print_task_ok(name)

            for nxt in sorted(adj[name]):
                indeg[nxt] -= 1
                if indeg[nxt] == 0:
                    ready.append(nxt)

    if failure is not None:
        raise failure

    return results
