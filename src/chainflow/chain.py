# chain.py
from __future__ import annotations

from typing import Any, Dict

from web3 import Web3
from web3.exceptions import Web3Exception

from .model import Block, DeploymentSpec


class ChainError(Exception):
    """Raised when the node cannot be reached or refuses a request."""


class EstimationError(ChainError):
    """The node rejected a dry-run gas estimate (revert, bad arguments...)."""


class SubmissionError(ChainError):
    """The node rejected the deployment transaction."""


# web3 surfaces JSON-RPC errors as Web3Exception subclasses (v7+) or ValueError (v6)
_RPC_ERRORS = (Web3Exception, ValueError)


class Web3ChainClient:
    """Chain client for an Ethereum JSON-RPC node."""

    def __init__(self, w3: Web3):
        self.w3 = w3

    @classmethod
    def from_url(cls, url: str, timeout: int = 60) -> "Web3ChainClient":
        """
        Connect to an HTTP JSON-RPC endpoint.

        Raises:
            ChainError: If the node is not reachable
        """
        w3 = Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout}))
        if not w3.is_connected():
            raise ChainError(f"Could not connect to the RPC URL at {url}")
        return cls(w3)

    def get_latest_block(self) -> Block:
        block = self.w3.eth.get_block("latest")
        return Block(number=int(block["number"]), timestamp=int(block["timestamp"]))

    def get_default_account(self) -> str:
        accounts = self.w3.eth.accounts
        if not accounts:
            raise ChainError("Node exposes no accounts; pass an explicit sender address")
        return accounts[0]

    def get_gas_price(self) -> int:
        return int(self.w3.eth.gas_price)

    def _constructor(self, spec: DeploymentSpec):
        contract = self.w3.eth.contract(abi=spec.abi, bytecode=spec.bytecode)
        return contract.constructor(*spec.arguments)

    def _tx(self, spec: DeploymentSpec) -> Dict[str, Any]:
        tx: Dict[str, Any] = {}
        if spec.sender:
            tx["from"] = Web3.to_checksum_address(spec.sender)
        if spec.gas is not None:
            tx["gas"] = spec.gas
        if spec.gas_price is not None:
            tx["gasPrice"] = spec.gas_price
        return tx

    def estimate_gas(self, spec: DeploymentSpec) -> int:
        try:
            return int(self._constructor(spec).estimate_gas(self._tx(spec)))
        except _RPC_ERRORS as e:
            raise EstimationError(f"Gas estimation rejected: {e}") from e

    def send_transaction(self, spec: DeploymentSpec) -> str:
        """Submit the contract-creation transaction and return its 0x-prefixed hash."""
        try:
            tx_hash = self._constructor(spec).transact(self._tx(spec))
        except _RPC_ERRORS as e:
            raise SubmissionError(f"Deployment transaction rejected: {e}") from e
        return Web3.to_hex(tx_hash)
