from __future__ import annotations

import os
import threading
from typing import Dict, List, Optional

import pytest

from chainflow.chain import EstimationError, SubmissionError
from chainflow.compiler import CompilationError, VersionLoadError
from chainflow.model import Artifact, Block, DeploymentSpec
from chainflow.ui.console import Console, set_console

SENDER = "0x" + "ab" * 20
DEFAULT_ACCOUNT = "0x" + "cd" * 20
TX_HASH = "0x" + "12" * 32


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console(debug=False))
    yield


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("CHAINFLOW_"):
            monkeypatch.delenv(key, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for key in list(os.environ):
        if key.startswith("CHAINFLOW_"):
            del os.environ[key]


class FakeCompiler:
    def __init__(self, artifacts: Optional[Dict[str, Artifact]] = None, fail_load: bool = False, fail_compile: bool = False):
        self.artifacts = artifacts if artifacts is not None else {
            "Sale.sol:Sale": Artifact(name="Sale.sol:Sale", bytecode="0x6060", abi=[{"type": "constructor"}]),
        }
        self.fail_load = fail_load
        self.fail_compile = fail_compile
        self.calls: List[str] = []
        self.compiled_sources: Optional[Dict[str, str]] = None

    def load_version(self, version: str) -> str:
        self.calls.append("load_version")
        if self.fail_load:
            raise VersionLoadError(f"solc {version} not available")
        return version

    def compile(self, sources: Dict[str, str], version: str) -> Dict[str, Artifact]:
        self.calls.append("compile")
        self.compiled_sources = sources
        if self.fail_compile:
            raise CompilationError("solc reported 1 error(s)", ["Sale.sol:1:1: ParserError"])
        return dict(self.artifacts)


class FakeChain:
    def __init__(self, timestamp: int = 1_500_000_000, gas: int = 1_234_567, gas_price: int = 20_000_000_000,
                 fail_estimate: bool = False, fail_send: bool = False):
        self.timestamp = timestamp
        self.gas = gas
        self.gas_price = gas_price
        self.fail_estimate = fail_estimate
        self.fail_send = fail_send
        self.calls: List[str] = []
        self.estimated: Optional[DeploymentSpec] = None
        self.sent: Optional[DeploymentSpec] = None
        self._lock = threading.Lock()

    def _record(self, name: str) -> None:
        with self._lock:
            self.calls.append(name)

    def get_latest_block(self) -> Block:
        self._record("get_latest_block")
        return Block(number=42, timestamp=self.timestamp)

    def get_default_account(self) -> str:
        self._record("get_default_account")
        return DEFAULT_ACCOUNT

    def get_gas_price(self) -> int:
        self._record("get_gas_price")
        return self.gas_price

    def estimate_gas(self, spec: DeploymentSpec) -> int:
        self._record("estimate_gas")
        self.estimated = spec
        if self.fail_estimate:
            raise EstimationError("Gas estimation rejected: execution reverted")
        return self.gas

    def send_transaction(self, spec: DeploymentSpec) -> str:
        self._record("send_transaction")
        self.sent = spec
        if self.fail_send:
            raise SubmissionError("Deployment transaction rejected: insufficient funds")
        return TX_HASH


@pytest.fixture
def compiler():
    return FakeCompiler()


@pytest.fixture
def chain():
    return FakeChain()
