from .dsl import task, step, graph, pipeline
from .runner import run_graph, TaskFailure
from .dag import GraphError
from .model import Task, DeployParams

__all__ = ["task", "step", "graph", "pipeline", "run_graph", "TaskFailure", "GraphError", "Task", "DeployParams"]
