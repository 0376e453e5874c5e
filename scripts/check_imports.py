#!/usr/bin/env python3
"""CI check: warn on httpx imports outside client/http.py.

Everything above the client layer talks to the PlatformClient protocol;
only the HTTP client may touch the transport library.  Exit 0 (warning
only); pass ``--strict`` to fail the build instead.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

ALLOWED_FILES = {Path("client") / "http.py"}
SRC_DIR = Path(__file__).resolve().parent.parent / "src" / "cf_operations"


def check(src_dir: Path = SRC_DIR) -> list[str]:
    violations: list[str] = []
    for py_file in sorted(src_dir.rglob("*.py")):
        rel = py_file.relative_to(src_dir)
        if rel in ALLOWED_FILES:
            continue
        tree = ast.parse(py_file.read_text(), filename=str(py_file))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.name.split(".")[0] == "httpx":
                        violations.append(f"{rel}:{node.lineno}: import {alias.name}")
            elif isinstance(node, ast.ImportFrom):
                if node.module and node.module.split(".")[0] == "httpx":
                    violations.append(f"{rel}:{node.lineno}: from {node.module}")
    return violations


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    violations = check()
    if violations:
        print("WARNING: httpx imports found outside client/http.py:")
        for v in violations:
            print(f"  {v}")
        sys.exit(1 if "--strict" in argv else 0)
    else:
        print("OK: no httpx imports outside client/http.py")


if __name__ == "__main__":
    main()
