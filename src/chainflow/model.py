# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Task:
    """
    A unit of work in a task graph.

    `run` receives a mapping {dependency name -> dependency result} and returns
    this task's result (or raises).
    """
    name: str
    run: Callable[[Dict[str, Any]], Any]
    needs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Block:
    number: int
    timestamp: int


@dataclass(frozen=True)
class Artifact:
    """Compiled contract: deployment bytecode + ABI."""
    name: str
    bytecode: str
    abi: List[Dict[str, Any]]


@dataclass(frozen=True)
class DeploymentSpec:
    """Everything needed to estimate or submit a contract-creation transaction."""
    bytecode: str
    abi: List[Dict[str, Any]]
    arguments: Tuple[Any, ...] = ()
    sender: Optional[str] = None
    gas: Optional[int] = None
    gas_price: Optional[int] = None


@dataclass(frozen=True)
class Estimate:
    spec: DeploymentSpec
    gas: int


@dataclass(frozen=True)
class DeployParams:
    """
    Immutable deployment parameters.

    Canonical constructor layout: `arguments` followed by the start time.
    When `start_time` is None it is derived from the latest block timestamp.
    """
    contract: str
    arguments: Tuple[Any, ...] = ()
    start_time: Optional[int] = None
    sender: Optional[str] = None
    gas_price: Optional[int] = None
    gas_limit: Optional[int] = None

    def constructor_args(self, block_timestamp: int, start_offset: int) -> Tuple[Any, ...]:
        start = self.start_time if self.start_time is not None else block_timestamp + start_offset
        return (*self.arguments, start)
