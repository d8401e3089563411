from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from chainflow.chain import ChainError, Web3ChainClient
from chainflow.compiler import SolcCompiler
from chainflow.config import NETWORKS, load_settings, resolve_network
from chainflow.dag import GraphError
from chainflow.deploy import deploy as run_deploy, load_params, read_sources
from chainflow.runner import TaskFailure
from chainflow.ui.console import Console, get_console, set_console
from chainflow.unify import unify as run_unify


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--env-file", default=None, help="dotenv file to load before reading CHAINFLOW_* settings")
@click.pass_context
def cli(ctx, debug, env_file):
    """chainflow: compile, estimate and deploy contracts as a task graph."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    try:
        ctx.obj["settings"] = load_settings(env_file)
    except ValueError as e:
        console.print_error("Invalid configuration", str(e))
        sys.exit(1)


@cli.command()
@click.option("--from", "sender", default=None, help="Sender address (defaults to the node's first account)")
@click.option("--params", "params_file", default=None, help="JSON file with constructor parameters")
@click.option("--contract", default=None, help="Artifact to deploy, as File.sol:Contract")
@click.option("--contracts-dir", default=None, help="Directory holding the .sol sources")
@click.option("--network", type=click.Choice(sorted(NETWORKS)), default=None, help="Named network preset")
@click.option("--rpc-url", default=None, help="JSON-RPC endpoint (overrides --network)")
@click.option("--compiler-version", default=None, help="Exact solc version, e.g. 0.4.18")
@click.option("--gas-price", type=int, default=None, help="Gas price in wei (defaults to the node's price)")
@click.option("--gas-limit", type=int, default=None, help="Gas limit (defaults to the estimate)")
@click.option("--start-offset", type=int, default=None, help="Seconds added to the latest block time for the default start time")
@click.option("--workers", default=None, type=int, help="Number of parallel workers")
@click.option("--print-plan/--no-print-plan", default=True, show_default=True, help="Print task stages before running")
@click.pass_context
def deploy(
    ctx,
    sender,
    params_file,
    contract,
    contracts_dir,
    network,
    rpc_url,
    compiler_version,
    gas_price,
    gas_limit,
    start_offset,
    workers,
    print_plan,
):
    """Compile the contracts, estimate gas and send the deployment transaction."""
    console = get_console()
    settings = ctx.obj["settings"]

    rpc_url = rpc_url or resolve_network(network, settings.rpc_url)
    contract = contract or settings.contract
    compiler_version = compiler_version or settings.compiler_version
    params_path = params_file or settings.params_file

    try:
        params = load_params(
            params_path,
            contract=contract,
            sender=sender,
            gas_price=gas_price,
            gas_limit=gas_limit,
        )
        sources = read_sources(contracts_dir or settings.contracts_dir)
    except FileNotFoundError as e:
        console.print_error("Missing input", str(e))
        sys.exit(1)
    except json.JSONDecodeError as e:
        console.print_error("Invalid parameter file", f"{params_path} is not valid JSON", details=[str(e)])
        sys.exit(1)
    except ValidationError as e:
        console.print_error(
            "Invalid parameter file",
            f"Could not read constructor parameters from {params_path}",
            details=[f"{'.'.join(str(x) for x in err['loc']) or '(root)'}: {err['msg']}" for err in e.errors()],
        )
        sys.exit(1)

    try:
        chain = Web3ChainClient.from_url(rpc_url, timeout=settings.rpc_timeout)
    except ChainError as e:
        console.print_error(
            "Network error",
            str(e),
            suggestion="Start a node or pass --rpc-url / --network.",
        )
        sys.exit(1)

    compiler = SolcCompiler(optimizer_runs=settings.optimizer_runs, install=settings.solc_install)

    console.print_run_started("deploy", target=contract, task_count=6)
    console.print_debug(f"rpc={rpc_url} solc={compiler_version} sources={len(sources)}")

    try:
        result = run_deploy(
            params,
            sources,
            compiler,
            chain,
            compiler_version=compiler_version,
            start_offset=start_offset if start_offset is not None else settings.start_time_offset,
            max_workers=workers or settings.max_workers,
            print_plan=print_plan,
        )
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except GraphError as e:
        console.print_exception(e)
        sys.exit(1)

    if not result.ok:
        console.print_error("Deployment failed", str(result.failure))
        if ctx.obj.get("debug", False):
            console.print_exception(result.failure.error)
        sys.exit(1)

    console.print_info(f"Success! transactionHash = {result.tx_hash}")


@cli.command()
@click.option("--contracts-dir", default=None, help="Directory holding the .sol sources")
@click.option("--output-dir", default=None, help="Directory for the unified file")
@click.option("--header", default=None, help="Pragma line written once at the top")
@click.option("--compiler-version", default=None, help="Compiler version embedded in the file name")
@click.option(
    "--fragment",
    "fragments",
    multiple=True,
    help="Source file to include; repeat in dependency order (defaults to the built-in order)",
)
@click.option("--output", default=None, help="Explicit output path (skips the timestamped name)")
@click.pass_context
def unify(ctx, contracts_dir, output_dir, header, compiler_version, fragments, output):
    """Concatenate contract sources into one unified .sol file."""
    console = get_console()
    settings = ctx.obj["settings"]

    fragment_list = list(fragments) or list(settings.fragments)
    console.print_run_started("unify", target=f"{len(fragment_list)} fragments", task_count=4)

    try:
        path = run_unify(
            fragment_list,
            contracts_dir=contracts_dir or settings.contracts_dir,
            output_dir=output_dir or settings.output_dir,
            header=header or settings.solidity_header,
            compiler_version=compiler_version or settings.compiler_version,
            destination=output,
        )
    except TaskFailure as e:
        console.print_error(
            "Unification failed",
            str(e),
            suggestion="The output file may be incomplete; delete it or re-run.",
        )
        if ctx.obj.get("debug", False):
            console.print_exception(e.error)
        sys.exit(1)

    console.print_info(f"unifyContracts done: {Path(path)}")


if __name__ == "__main__":
    cli()
