# deploy.py
"""
Contract deployment as a task graph:

    resolve_block ─┐
    load_compiler ─┴─ compile_and_estimate ─┐
    resolve_sender ─────────────────────────┼─ send_deployment
    resolve_gas_price ──────────────────────┘

Defaulting policies (sender, start time, gas price) live inside the tasks.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from web3 import Web3

from .compiler import CompilationError
from .dsl import graph, task
from .model import DeployParams, DeploymentSpec, Estimate, Task
from .runner import TaskFailure, run_graph


# ----------------------------------------------------------------------
# Parameter file
# ----------------------------------------------------------------------

class SaleParameters(BaseModel):
    """Constructor arguments of the token sale contract, as stored in JSON."""
    model_config = ConfigDict(populate_by_name=True)

    owner: str
    funding_recipient: str = Field(alias="fundingRecipient")
    community_pool_address: str = Field(alias="communityPoolAddress")
    future_development_pool_address: str = Field(alias="futureDevelopmentPoolAddress")
    team_pool_address: str = Field(alias="teamPoolAddress")
    start_time: Optional[int] = Field(default=None, alias="startTime")

    @field_validator(
        "owner",
        "funding_recipient",
        "community_pool_address",
        "future_development_pool_address",
        "team_pool_address",
    )
    @classmethod
    def checksum_address(cls, value: str) -> str:
        # web3 only encodes checksummed addresses
        if not Web3.is_address(value):
            raise ValueError(f"{value!r} is not a valid address")
        return Web3.to_checksum_address(value)

    def arguments(self) -> tuple:
        return (
            self.owner,
            self.funding_recipient,
            self.community_pool_address,
            self.future_development_pool_address,
            self.team_pool_address,
        )


def load_params(
    path: str | Path,
    *,
    contract: str,
    sender: Optional[str] = None,
    gas_price: Optional[int] = None,
    gas_limit: Optional[int] = None,
) -> DeployParams:
    """
    Read the JSON parameter file and freeze it into DeployParams.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If required fields are missing
    """
    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(f"Parameter file not found: {p}")
    data = json.loads(p.read_text(encoding="utf-8"))
    sale = SaleParameters.model_validate(data)
    return DeployParams(
        contract=contract,
        arguments=sale.arguments(),
        start_time=sale.start_time,
        sender=sender,
        gas_price=gas_price,
        gas_limit=gas_limit,
    )


def read_sources(contracts_dir: str | Path) -> Dict[str, str]:
    """Read every .sol file under `contracts_dir`, keyed by its relative posix path."""
    root = Path(contracts_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Contracts directory not found: {root}")
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*.sol"))
    }


# ----------------------------------------------------------------------
# Graph
# ----------------------------------------------------------------------

@dataclass
class DeployResult:
    tx_hash: Optional[str] = None
    failure: Optional[TaskFailure] = None
    results: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.failure is None


def deploy_graph(
    params: DeployParams,
    sources: Dict[str, str],
    compiler,
    chain,
    *,
    compiler_version: str,
    start_offset: int = 3600,
) -> List[Task]:
    """Build the compile -> estimate -> send graph for one deployment."""

    def resolve_block(_deps):
        return chain.get_latest_block()

    def resolve_sender(_deps):
        if params.sender:
            return params.sender
        return chain.get_default_account()

    def load_compiler(_deps):
        return compiler.load_version(compiler_version)

    def compile_and_estimate(deps) -> Estimate:
        artifacts = compiler.compile(sources, deps["load_compiler"])
        artifact = artifacts.get(params.contract)
        if artifact is None:
            raise CompilationError(
                f"Artifact {params.contract!r} not found in compiler output",
                [f"available: {sorted(artifacts)}"],
            )
        block = deps["resolve_block"]
        spec = DeploymentSpec(
            bytecode=artifact.bytecode,
            abi=artifact.abi,
            arguments=params.constructor_args(block.timestamp, start_offset),
        )
        return Estimate(spec=spec, gas=chain.estimate_gas(spec))

    def resolve_gas_price(_deps):
        if params.gas_price is not None:
            return params.gas_price
        return chain.get_gas_price()

    def send_deployment(deps) -> str:
        estimate: Estimate = deps["compile_and_estimate"]
        spec = replace(
            estimate.spec,
            sender=deps["resolve_sender"],
            gas=params.gas_limit if params.gas_limit is not None else estimate.gas,
            gas_price=deps["resolve_gas_price"],
        )
        return chain.send_transaction(spec)

    return graph(
        task("resolve_block", resolve_block),
        task("resolve_sender", resolve_sender),
        task("load_compiler", load_compiler),
        task("compile_and_estimate", compile_and_estimate, needs=["load_compiler", "resolve_block"]),
        task("resolve_gas_price", resolve_gas_price),
        task(
            "send_deployment",
            send_deployment,
            needs=["resolve_sender", "resolve_gas_price", "compile_and_estimate"],
        ),
    )


def deploy(
    params: DeployParams,
    sources: Dict[str, str],
    compiler,
    chain,
    *,
    compiler_version: str,
    start_offset: int = 3600,
    max_workers: Optional[int] = None,
    print_plan: bool = False,
) -> DeployResult:
    """Run the deployment graph; failures come back tagged, never raised."""
    tasks = deploy_graph(
        params,
        sources,
        compiler,
        chain,
        compiler_version=compiler_version,
        start_offset=start_offset,
    )
    try:
        results = run_graph(tasks, max_workers=max_workers, print_plan=print_plan)
    except TaskFailure as failure:
        return DeployResult(failure=failure)
    return DeployResult(tx_hash=results["send_deployment"], results=results)
