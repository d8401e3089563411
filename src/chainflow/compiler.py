# compiler.py
# Compiler client on top of py-solc-x (standard JSON interface).
# Everything that talks to solc goes through here.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import solcx
from solcx.exceptions import SolcError, SolcInstallationError

from .model import Artifact


class VersionLoadError(Exception):
    """Raised when the requested compiler version cannot be loaded."""


@dataclass(eq=False)
class CompilationError(Exception):
    message: str
    errors: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        return "\n".join([self.message, *self.errors])


class SolcCompiler:
    """Compiler client backed by solc releases managed by solcx."""

    def __init__(self, optimizer_runs: int = 200, optimize: bool = True, install: bool = True):
        self.optimizer_runs = optimizer_runs
        self.optimize = optimize
        self.install = install

    def installed_versions(self) -> List[str]:
        return [str(v) for v in solcx.get_installed_solc_versions()]

    def load_version(self, version: str) -> str:
        """
        Make exactly `version` available, downloading it if needed.

        Returns:
            The version string, usable as a handle for compile().

        Raises:
            VersionLoadError: If the version is not installed and cannot be installed
        """
        version = version.lstrip("v")
        if version in self.installed_versions():
            return version
        if not self.install:
            raise VersionLoadError(f"solc {version} is not installed and installing is disabled")

        try:
            installed = solcx.install_solc(version, show_progress=False)
        except (SolcInstallationError, ValueError, OSError) as e:
            raise VersionLoadError(f"solc {version} could not be installed: {e}") from e
        return str(installed)

    def standard_input(self, sources: Dict[str, str]) -> dict:
        return {
            "language": "Solidity",
            "sources": {name: {"content": text} for name, text in sources.items()},
            "settings": {
                "optimizer": {"enabled": self.optimize, "runs": self.optimizer_runs},
                "outputSelection": {"*": {"*": ["abi", "evm.bytecode.object"]}},
            },
        }

    def compile(self, sources: Dict[str, str], version: str) -> Dict[str, Artifact]:
        """
        Compile `sources` ({file name -> source text}) with solc `version`.

        Returns:
            {"File.sol:Contract" -> Artifact}

        Raises:
            CompilationError: On compiler-reported errors or a failing solc process
        """
        try:
            output = solcx.compile_standard(self.standard_input(sources), solc_version=version)
        except SolcError as e:
            errors = [
                err.get("formattedMessage") or err.get("message", "")
                for err in (e.error_dict or [])
                if err.get("severity") == "error"
            ]
            if errors:
                raise CompilationError(f"solc reported {len(errors)} error(s)", errors) from e
            raise CompilationError(f"solc exited with {e.return_code}", [e.message]) from e

        artifacts: Dict[str, Artifact] = {}
        for file_name, contracts in output.get("contracts", {}).items():
            for contract_name, data in contracts.items():
                key = f"{file_name}:{contract_name}"
                bytecode = data.get("evm", {}).get("bytecode", {}).get("object", "")
                artifacts[key] = Artifact(
                    name=key,
                    bytecode="0x" + bytecode if bytecode else "",
                    abi=data.get("abi", []),
                )
        return artifacts
