"""Architecture boundary checker (no external deps).

Rules:
- core/ and domain/ stay pure: no services, app, infra or siwe_lint imports
- services/ must not import the siwe_lint facade
- infra/ must not import services

Usage:
  python scripts/check_architecture.py
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]

RULES = {
    'core': {'services', 'app', 'infra', 'siwe_lint'},
    'domain': {'services', 'app', 'infra', 'siwe_lint'},
    'services': {'siwe_lint'},
    'infra': {'services'},
}


def iter_py_files() -> List[Path]:
    skip_dirs = {'.pytest_cache', '__pycache__', 'build', 'dist', '.git', '.venv'}
    files: List[Path] = []
    for p in ROOT.rglob('*.py'):
        if any(part in skip_dirs for part in p.parts):
            continue
        files.append(p)
    return files


def layer_of(path: Path) -> Optional[str]:
    rel = path.relative_to(ROOT)
    if not rel.parts:
        return None
    top = rel.parts[0]
    return top if top in RULES else None


def top_import_name(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Import):
        for alias in node.names:
            return alias.name.split('.')[0]
    if isinstance(node, ast.ImportFrom):
        if node.module:
            return node.module.split('.')[0]
    return None


def collect_violations() -> List[str]:
    violations: List[str] = []
    for fpath in iter_py_files():
        layer = layer_of(fpath)
        if layer is None:
            continue
        tree = ast.parse(fpath.read_text(encoding='utf-8'), filename=str(fpath))
        forbidden = RULES[layer]
        for node in ast.walk(tree):
            if not isinstance(node, (ast.Import, ast.ImportFrom)):
                continue
            name = top_import_name(node)
            if name and name in forbidden:
                lineno = getattr(node, 'lineno', '?')
                violations.append(f"{layer}: {fpath.relative_to(ROOT)}:{lineno} imports '{name}'")
    return violations


def main() -> int:
    violations = collect_violations()
    if violations:
        print('Architecture boundary violations found:')
        for v in violations:
            print('  -', v)
        return 2

    print('OK: no architecture boundary violations found.')
    return 0


if __name__ == '__main__':
    sys.exit(main())
