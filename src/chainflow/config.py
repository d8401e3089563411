# config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Mirrors the networks of the original truffle project.
NETWORKS: Dict[str, str] = {
    "development": "http://localhost:8545",
    "coverage": "http://localhost:8555",
}

# Concatenation order for unification; later files use declarations from earlier ones.
DEFAULT_FRAGMENTS: List[str] = [
    "Ownable.sol",
    "SafeMath.sol",
    "ERC20.sol",
    "ERC677.sol",
    "ERC223Receiver.sol",
    "BasicToken.sol",
    "Standard677Token.sol",
    "TokenHolder.sol",
    "ColuLocalNetwork.sol",
    "Standard223Receiver.sol",
    "TokenOwnable.sol",
    "VestingTrustee.sol",
    "ColuLocalNetworkSale.sol",
]


@dataclass(frozen=True)
class Settings:
    rpc_url: str = NETWORKS["development"]
    rpc_timeout: int = 60
    compiler_version: str = "0.4.18"
    solc_install: bool = True
    solidity_header: str = "pragma solidity ^0.4.18;"
    optimizer_runs: int = 200
    start_time_offset: int = 3600
    contracts_dir: str = "contracts"
    output_dir: str = "output"
    params_file: str = "TestTokenSale.json"
    contract: str = "TestTokenSale.sol:TestTokenSale"
    max_workers: Optional[int] = None
    fragments: List[str] = field(default_factory=lambda: list(DEFAULT_FRAGMENTS))


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    if raw.lower() in ("1", "true", "yes", "on"):
        return True
    if raw.lower() in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from CHAINFLOW_* environment variables.

    A .env file (or `env_file`) is loaded first; real environment variables win.
    """
    load_dotenv(env_file)
    d = Settings()

    network = os.environ.get("CHAINFLOW_NETWORK")
    rpc_url = os.environ.get("CHAINFLOW_RPC_URL") or resolve_network(network, d.rpc_url)

    fragments_raw = os.environ.get("CHAINFLOW_FRAGMENTS")
    fragments = [f.strip() for f in fragments_raw.split(",") if f.strip()] if fragments_raw else d.fragments

    return Settings(
        rpc_url=rpc_url,
        rpc_timeout=_int_env("CHAINFLOW_RPC_TIMEOUT", d.rpc_timeout),
        compiler_version=os.environ.get("CHAINFLOW_COMPILER_VERSION", d.compiler_version),
        solc_install=_bool_env("CHAINFLOW_SOLC_INSTALL", d.solc_install),
        solidity_header=os.environ.get("CHAINFLOW_SOLIDITY_HEADER", d.solidity_header),
        optimizer_runs=_int_env("CHAINFLOW_OPTIMIZER_RUNS", d.optimizer_runs),
        start_time_offset=_int_env("CHAINFLOW_START_TIME_OFFSET", d.start_time_offset),
        contracts_dir=os.environ.get("CHAINFLOW_CONTRACTS_DIR", d.contracts_dir),
        output_dir=os.environ.get("CHAINFLOW_OUTPUT_DIR", d.output_dir),
        params_file=os.environ.get("CHAINFLOW_PARAMS_FILE", d.params_file),
        contract=os.environ.get("CHAINFLOW_CONTRACT", d.contract),
        max_workers=_int_env("CHAINFLOW_MAX_WORKERS", d.max_workers),
        fragments=fragments,
    )


def resolve_network(network: Optional[str], default: str) -> str:
    if not network:
        return default
    if network not in NETWORKS:
        raise ValueError(f"Unknown network {network!r}. Known networks: {sorted(NETWORKS)}")
    return NETWORKS[network]
