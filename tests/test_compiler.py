import pytest
from solcx.exceptions import SolcError, SolcInstallationError

from chainflow import compiler as compiler_mod
from chainflow.compiler import CompilationError, SolcCompiler, VersionLoadError


class FakeSolcx:
    """Stands in for the solcx install/compile functions."""

    def __init__(self, installed=(), output=None, compile_error=None, install_error=None):
        self.installed = list(installed)
        self.output = output if output is not None else {}
        self.compile_error = compile_error
        self.install_error = install_error
        self.install_calls = []
        self.compile_calls = []

    def get_installed_solc_versions(self):
        return list(self.installed)

    def install_solc(self, version, show_progress=False):
        self.install_calls.append(version)
        if self.install_error is not None:
            raise self.install_error
        self.installed.append(version)
        return version

    def compile_standard(self, input_data, solc_version=None):
        self.compile_calls.append((input_data, solc_version))
        if self.compile_error is not None:
            raise self.compile_error
        return self.output


@pytest.fixture
def fake_solcx(monkeypatch):
    def install(**kw):
        fake = FakeSolcx(**kw)
        for name in ("get_installed_solc_versions", "install_solc", "compile_standard"):
            monkeypatch.setattr(compiler_mod.solcx, name, getattr(fake, name))
        return fake

    return install


def solc_error(message, error_dict=None, return_code=1):
    return SolcError(
        message,
        command=["solc", "--standard-json"],
        return_code=return_code,
        stdin_data="{}",
        stdout_data="",
        stderr_data="",
        error_dict=error_dict,
    )


class TestLoadVersion:
    def test_installed_version_is_not_downloaded(self, fake_solcx):
        fake = fake_solcx(installed=["0.4.18"])
        assert SolcCompiler().load_version("v0.4.18") == "0.4.18"
        assert fake.install_calls == []

    def test_missing_version_is_installed(self, fake_solcx):
        fake = fake_solcx(installed=["0.8.20"])
        assert SolcCompiler().load_version("0.4.18") == "0.4.18"
        assert fake.install_calls == ["0.4.18"]

    def test_install_failure(self, fake_solcx):
        fake_solcx(install_error=SolcInstallationError("checksum mismatch"))
        with pytest.raises(VersionLoadError, match="solc 0.4.18 could not be installed") as excinfo:
            SolcCompiler().load_version("0.4.18")
        assert isinstance(excinfo.value.__cause__, SolcInstallationError)

    def test_unknown_version(self, fake_solcx):
        fake_solcx(install_error=ValueError("Invalid version: 'banana'"))
        with pytest.raises(VersionLoadError):
            SolcCompiler().load_version("banana")

    def test_download_unreachable(self, fake_solcx):
        fake_solcx(install_error=ConnectionError("binaries.soliditylang.org"))
        with pytest.raises(VersionLoadError, match="soliditylang"):
            SolcCompiler().load_version("0.4.18")

    def test_install_disabled(self, fake_solcx):
        fake = fake_solcx()
        with pytest.raises(VersionLoadError, match="installing is disabled"):
            SolcCompiler(install=False).load_version("0.4.18")
        assert fake.install_calls == []


class TestCompile:
    def test_returns_artifacts(self, fake_solcx):
        fake = fake_solcx(installed=["0.4.18"], output={
            "contracts": {
                "Sale.sol": {
                    "Sale": {"abi": [{"type": "constructor"}], "evm": {"bytecode": {"object": "6060"}}},
                    "Lib": {"abi": [], "evm": {"bytecode": {"object": ""}}},
                }
            },
            "errors": [{"severity": "warning", "formattedMessage": "unused variable"}],
        })

        solc = SolcCompiler(optimizer_runs=200)
        artifacts = solc.compile({"Sale.sol": "contract Sale {}"}, solc.load_version("0.4.18"))

        assert set(artifacts) == {"Sale.sol:Sale", "Sale.sol:Lib"}
        assert artifacts["Sale.sol:Sale"].bytecode == "0x6060"
        assert artifacts["Sale.sol:Sale"].abi == [{"type": "constructor"}]
        assert artifacts["Sale.sol:Lib"].bytecode == ""

        sent, version = fake.compile_calls[0]
        assert version == "0.4.18"
        assert sent["sources"] == {"Sale.sol": {"content": "contract Sale {}"}}
        assert sent["settings"]["optimizer"] == {"enabled": True, "runs": 200}

    def test_compiler_reported_errors(self, fake_solcx):
        fake_solcx(compile_error=solc_error(
            "Sale.sol:1:1: ParserError: Expected pragma",
            error_dict=[
                {"severity": "warning", "formattedMessage": "unused variable"},
                {"severity": "error", "formattedMessage": "Sale.sol:1:1: ParserError: Expected pragma"},
            ],
        ))
        with pytest.raises(CompilationError, match="1 error") as excinfo:
            SolcCompiler().compile({"Sale.sol": "garbage"}, "0.4.18")
        assert excinfo.value.errors == ["Sale.sol:1:1: ParserError: Expected pragma"]
        assert isinstance(excinfo.value.__cause__, SolcError)

    def test_failing_process(self, fake_solcx):
        fake_solcx(compile_error=solc_error("An error occurred during execution", return_code=139))
        with pytest.raises(CompilationError, match="exited with 139"):
            SolcCompiler().compile({"Sale.sol": "contract Sale {}"}, "0.4.18")
