"""Local check runner.

Steps:

1) ruff format --check
2) ruff check
3) pytest
4) (optional) CLI smoke: random -> info -> convert on a throwaway directory

Usage:
  python -m bagdata.tools.ci_check
  python -m bagdata.tools.ci_check --include-cli-smoke
"""

from __future__ import annotations

import argparse
import shutil
import subprocess
import sys
import tempfile
from collections.abc import Callable
from pathlib import Path


def _find_repo_root(start: Path) -> Path:
    for p in [start, *start.parents]:
        if (p / "pyproject.toml").exists() and (p / "src" / "bagdata").exists():
            return p
    return start


def _resolve_ruff(repo_root: Path) -> str | None:
    """Find ruff executable (.venv first, then PATH)."""
    candidates = [
        repo_root / ".venv" / "Scripts" / "ruff.exe",  # Windows venv
        repo_root / ".venv" / "bin" / "ruff",  # Linux/macOS venv
    ]
    for p in candidates:
        if p.exists():
            return str(p)
    return shutil.which("ruff")


def _run(cmd: list[str], *, cwd: Path) -> int:
    print(f"[ci_check] $ {' '.join(cmd)}")
    p = subprocess.run(cmd, cwd=str(cwd))
    return int(p.returncode)


def _run_cli_smoke(repo_root: Path) -> int:
    cli = [sys.executable, "-m", "bagdata.tools.bags_cli"]
    with tempfile.TemporaryDirectory(prefix="bagdata_ci_") as tmp:
        binary = str(Path(tmp) / "smoke.bags")
        text = str(Path(tmp) / "smoke.csv")
        plan = [
            [*cli, "random", binary, "--bags", "5", "--bag-size", "3", "--dimension", "4"],
            [*cli, "info", binary],
            [*cli, "convert", binary, text],
            [*cli, "info", text, "--header"],
        ]
        for cmd in plan:
            code = _run(cmd, cwd=repo_root)
            if code != 0:
                return code
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="bagdata local check.")
    ap.add_argument(
        "--include-cli-smoke",
        action="store_true",
        help="run bags_cli random/info/convert on a temp directory",
    )
    return ap


def build_step_names(*, include_cli_smoke: bool) -> list[str]:
    """Ordered step names for the given options (no subprocess is run)."""
    names = ["ruff format --check", "ruff check", "pytest"]
    if include_cli_smoke:
        names.append("cli smoke")
    return names


def run_ci_check(*, include_cli_smoke: bool) -> int:
    repo_root = _find_repo_root(Path.cwd())
    print(f"[ci_check] repo_root: {repo_root}")

    ruff = _resolve_ruff(repo_root)
    if not ruff:
        print(
            "[ci_check] ERROR: ruff not found. Run: python -m pip install -e '.[dev]'",
            file=sys.stderr,
        )
        return 2

    runnables: dict[str, Callable[[], int]] = {
        "ruff format --check": lambda: _run([ruff, "format", "--check", "."], cwd=repo_root),
        "ruff check": lambda: _run([ruff, "check", "."], cwd=repo_root),
        "pytest": lambda: _run([sys.executable, "-m", "pytest", "-q"], cwd=repo_root),
        "cli smoke": lambda: _run_cli_smoke(repo_root),
    }

    plan = build_step_names(include_cli_smoke=include_cli_smoke)
    total = len(plan)
    for i, name in enumerate(plan, start=1):
        print(f"[ci_check] step {i}/{total}: {name}")
        code = runnables[name]()
        if code != 0:
            return code

    print("[ci_check] OK")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return run_ci_check(include_cli_smoke=bool(args.include_cli_smoke))


if __name__ == "__main__":
    raise SystemExit(main())
