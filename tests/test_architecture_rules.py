"""Architecture enforcement tests for the fan-out package layering.

This module provides lightweight, repository-local invariants to ensure
that the inner packages remain decoupled from the outer service layer and
that the orchestrator depends on the adapter contract rather than on any
concrete provider. It focuses on import boundaries only and is designed to
fail fast if a forbidden dependency is introduced.

Rules validated here:
1) ``base``, ``config``, ``orchestration``, ``persistence`` and the provider
   packages must not import ``fanout_providers.service`` (or submodules).
2) ``orchestration`` must not import a concrete provider package; adapters
   reach it through the registry.

These tests are intentionally static-file scans to avoid import-time side
effects, and they emit clear failure messages for quick remediation.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

import pytest

PACKAGE_ROOT = Path(__file__).resolve().parent.parent / "fanout_providers"
INNER_PACKAGES = (
    "base",
    "config",
    "orchestration",
    "persistence",
    "openai",
    "anthropic",
    "gemini",
    "perplexity",
    "deepseek",
    "mock",
)
PROVIDER_PACKAGES = ("openai", "anthropic", "gemini", "perplexity", "deepseek", "mock")

_IMPORT_RE = re.compile(r"^\s*(?:from\s+(\.*[\w.]*)\s+import|import\s+([\w.]+))", re.MULTILINE)


def _iter_python_files(root: Path) -> Iterable[Path]:
    """Yield all Python source files under a root directory, skipping caches."""
    for path in root.rglob("*.py"):
        if "__pycache__" in path.parts:
            continue
        yield path


def _imported_modules(path: Path) -> List[str]:
    """Return the absolute dotted names imported by ``path``.

    Relative imports are resolved against the file's own package so
    ``from ..service import x`` inside ``fanout_providers/base`` is reported
    as ``fanout_providers.service``.
    """
    src = path.read_text(encoding="utf-8", errors="replace")
    package = list(path.relative_to(PACKAGE_ROOT.parent).with_suffix("").parts[:-1])
    out: List[str] = []
    for rel, absolute in _IMPORT_RE.findall(src):
        if absolute:
            out.append(absolute)
            continue
        dots = len(rel) - len(rel.lstrip("."))
        if dots == 0:
            out.append(rel)
            continue
        base = package[: len(package) - (dots - 1)] if dots > 1 else package
        tail = rel.lstrip(".")
        out.append(".".join(base + ([tail] if tail else [])))
    return out


def _offenders(packages: Iterable[str], forbidden: Iterable[str]) -> List[str]:
    prefixes = tuple(forbidden)
    offenders: List[str] = []
    for pkg in packages:
        root = PACKAGE_ROOT / pkg
        if not root.is_dir():
            continue
        for py in _iter_python_files(root):
            for mod in _imported_modules(py):
                if any(mod == p or mod.startswith(p + ".") for p in prefixes):
                    offenders.append(f"{py.relative_to(PACKAGE_ROOT.parent)}: imports '{mod}'")
    return offenders


def test_inner_layers_do_not_import_service() -> None:
    """Ensure inner packages never import the HTTP service or the CLI."""
    if not PACKAGE_ROOT.is_dir():
        pytest.skip("fanout_providers package not found; skipping boundary check")
    offenders = _offenders(INNER_PACKAGES, ["fanout_providers.service"])
    if offenders:
        pytest.fail("Inner layers must not import the service layer.\n" + "\n".join(offenders))


def test_orchestration_does_not_import_concrete_providers() -> None:
    """The orchestrator must depend on the adapter contract, not on providers."""
    if not PACKAGE_ROOT.is_dir():
        pytest.skip("fanout_providers package not found; skipping boundary check")
    forbidden = [f"fanout_providers.{name}" for name in PROVIDER_PACKAGES]
    offenders = _offenders(["orchestration"], forbidden)
    if offenders:
        pytest.fail("Orchestration must not import concrete provider packages.\n" + "\n".join(offenders))


def test_import_resolution_handles_relative_forms() -> None:
    """Guard the scanner itself so a parsing regression cannot hide violations."""
    probe = PACKAGE_ROOT / "orchestration" / "orchestrator.py"
    mods = _imported_modules(probe)
    assert "fanout_providers.base.registry" in mods  # nosec B101
    assert "fanout_providers.orchestration.request_state" in mods  # nosec B101
