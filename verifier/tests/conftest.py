import json
from pathlib import Path

import pytest

from verifier.core.models import AnalysisResponse, CompiledArtifact, JobStatus


FIXTURES = Path(__file__).parent / "fixtures"

STORE_SOURCE = """pragma solidity ^0.5.0;

contract Store {
    uint256[] public values;

    function add(uint256 v) public {
        values.push(v);
    }
}
"""

# PUSH1 80, PUSH1 40, MSTORE, CALLVALUE, DUP1, ISZERO, PUSH1 0f, JUMPI,
# PUSH1 00, DUP1, REVERT, JUMPDEST, POP
STORE_DEPLOYED_BYTECODE = "0x6080604052348015600f57600080fd5b50"


def _store_ast(source: str) -> dict:
    decl = source.index("uint256[] public values")
    contract = source.index("contract Store")
    contract_len = len(source.rstrip("\n")) - contract
    func = source.index("function add")
    func_len = source.index("    }\n}") + 5 - func
    param = source.index("uint256 v")
    push = source.index("values.push(v)")
    return {
        "nodeType": "SourceUnit",
        "absolutePath": "contracts/store.sol",
        "src": f"0:{len(source)}:0",
        "nodes": [
            {"nodeType": "PragmaDirective", "src": "0:23:0", "literals": ["solidity", "^", "0.5", ".0"]},
            {
                "nodeType": "ContractDefinition",
                "name": "Store",
                "src": f"{contract}:{contract_len}:0",
                "nodes": [
                    {
                        "nodeType": "VariableDeclaration",
                        "name": "values",
                        "stateVariable": True,
                        "visibility": "public",
                        "src": f"{decl}:23:0",
                        "typeName": {
                            "nodeType": "ArrayTypeName",
                            "length": None,
                            "src": f"{decl}:9:0",
                            "baseType": {"nodeType": "ElementaryTypeName", "name": "uint256", "src": f"{decl}:7:0"},
                        },
                    },
                    {
                        "nodeType": "FunctionDefinition",
                        "name": "add",
                        "src": f"{func}:{func_len}:0",
                        "parameters": {
                            "nodeType": "ParameterList",
                            "src": f"{param - 1}:11:0",
                            "parameters": [
                                {
                                    "nodeType": "VariableDeclaration",
                                    "name": "v",
                                    "stateVariable": False,
                                    "visibility": "internal",
                                    "src": f"{param}:9:0",
                                    "typeName": {"nodeType": "ElementaryTypeName", "name": "uint256"},
                                }
                            ],
                        },
                        "body": {
                            "nodeType": "Block",
                            "src": f"{push - 10}:28:0",
                            "statements": [
                                {"nodeType": "ExpressionStatement", "src": f"{push}:15:0"},
                            ],
                        },
                    },
                ],
            },
        ],
    }


def _store_deployed_source_map(source: str) -> str:
    contract = source.index("contract Store")
    contract_len = len(source.rstrip("\n")) - contract
    decl = source.index("uint256[] public values")
    push = source.index("values.push(v)")
    # instructions 0-5 share the contract range, 6 is the state variable,
    # 7 is the push, 8-12 repeat the push
    return f"{contract}:{contract_len}:0:-" + ";" * 6 + f"{decl}:23:0" + ";" + f"{push}:14:0" + ";" * 5


def make_build_json(name: str = "Store", source_path: str = "/project/contracts/store.sol") -> dict:
    return {
        "contractName": name,
        "bytecode": "0x6080604052348015600f57600080fd5b50",
        "deployedBytecode": STORE_DEPLOYED_BYTECODE,
        "sourceMap": "25:115:0:-;;;;",
        "deployedSourceMap": _store_deployed_source_map(STORE_SOURCE),
        "sourcePath": source_path,
        "source": STORE_SOURCE,
        "ast": _store_ast(STORE_SOURCE),
        "compiler": {"name": "solc", "version": "0.5.0+commit.1d4f565a.Emscripten.clang"},
    }


@pytest.fixture
def store_source() -> str:
    return STORE_SOURCE


@pytest.fixture
def store_build_json() -> dict:
    return make_build_json()


@pytest.fixture
def store_artifact() -> CompiledArtifact:
    return CompiledArtifact.from_build_json(make_build_json())


@pytest.fixture
def make_artifact():
    def _make(name: str = "Store", source_path: str = "/project/contracts/store.sol") -> CompiledArtifact:
        return CompiledArtifact.from_build_json(make_build_json(name, source_path))

    return _make


@pytest.fixture
def issues_response() -> list[dict]:
    return json.loads((FIXTURES / "issues_response.json").read_text(encoding="utf-8"))


def finished(issues: list[dict], job_id: str = "job-1") -> AnalysisResponse:
    return AnalysisResponse(issues=issues, status=JobStatus(job_id=job_id, state="Finished", payload={"status": "Finished"}))


@pytest.fixture
def finished_response():
    return finished
