# unify.py
"""
Concatenate an ordered list of Solidity files into one "unified" file
(e.g. for block-explorer verification).

Steps run strictly in sequence on the task executor:
write_header -> read_fragments -> clear_fragments -> append_fragments.
A failed run leaves whatever was written so far; treat that file as garbage.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .dsl import pipeline, step
from .model import Task
from .runner import run_graph


@dataclass(frozen=True)
class Fragment:
    name: str
    text: str


def solidity_version(header: str) -> str:
    """'pragma solidity ^0.4.18;' -> '^0.4.18'"""
    return header.replace("pragma solidity ", "").replace(";", "").strip()


def unified_path(output_dir: str | Path, header: str, compiler_version: str, now_ms: Optional[int] = None) -> Path:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    name = f"Unified_{solidity_version(header)}_{compiler_version}_{now_ms}.sol"
    return Path(output_dir) / name


def clear_fragment(text: str, header: str, names: List[str]) -> str:
    """
    Strip the pragma and intra-set imports from one fragment.

    Plain textual replacement of the first occurrence of each statement;
    it does not understand comments or string literals.
    """
    cleared = text.replace(header.strip(), "", 1)
    for name in names:
        cleared = cleared.replace(f"import './{name}';", "", 1)
        cleared = cleared.replace(f'import "./{name}";', "", 1)
    return cleared


def unify_graph(
    fragments: List[str],
    *,
    contracts_dir: str | Path,
    destination: str | Path,
    header: str,
) -> List[Task]:
    src_root = Path(contracts_dir)
    dest = Path(destination)
    names = list(fragments)

    def write_header(_prev) -> Path:
        dest.parent.mkdir(parents=True, exist_ok=True)
        # truncates any previous content
        with dest.open("w", encoding="utf-8") as f:
            f.write(header)
        return dest

    def read_fragments(_prev) -> List[Fragment]:
        return [Fragment(n, (src_root / n).read_text(encoding="utf-8")) for n in names]

    def clear_fragments(read: List[Fragment]) -> List[Fragment]:
        return [Fragment(f.name, clear_fragment(f.text, header, names)) for f in read]

    def append_fragments(cleared: List[Fragment]) -> Path:
        with dest.open("a", encoding="utf-8") as f:
            for frag in cleared:
                f.write(frag.text)
        return dest

    return pipeline(
        step("write_header", write_header),
        step("read_fragments", read_fragments),
        step("clear_fragments", clear_fragments),
        step("append_fragments", append_fragments),
    )


def unify(
    fragments: List[str],
    *,
    contracts_dir: str | Path,
    output_dir: str | Path,
    header: str,
    compiler_version: str,
    destination: str | Path | None = None,
) -> Path:
    """
    Run the unification pipeline and return the written file's path.

    Raises:
        TaskFailure: Tagged with the failing step (cause is usually an OSError)
    """
    dest = Path(destination) if destination else unified_path(output_dir, header, compiler_version)
    tasks = unify_graph(fragments, contracts_dir=contracts_dir, destination=dest, header=header)
    results = run_graph(tasks, max_workers=1)
    return results["append_fragments"]
