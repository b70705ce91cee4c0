"""Run the deckgen pytest suite programmatically.

Installed as the ``deckgen-tests`` console script. ``deckgen-tests
--contract`` runs only the cross-target layout contract tests, which is the
check to run after touching any renderer.
"""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

import pytest

DEFAULT_PYTEST_ARGS: tuple[str, ...] = ("-q",)
CONTRACT_PYTEST_ARGS: tuple[str, ...] = ("-q", "-m", "contract")


def run_tests(args: Optional[Sequence[str]] = None) -> int:
    """Run pytest with ``args`` (``-q`` when omitted) and return the exit code."""

    pytest_args = list(args) if args is not None else list(DEFAULT_PYTEST_ARGS)
    return pytest.main(pytest_args)


def run_default() -> int:
    return run_tests()


def run_contract_suite(extra_args: Sequence[str] = ()) -> int:
    """Render every layout on every target and compare against the zone contract."""

    return run_tests([*CONTRACT_PYTEST_ARGS, *extra_args])


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="deckgen-tests", description=__doc__.splitlines()[0])
    parser.add_argument(
        "--contract", action="store_true", help="run only the renderer contract tests"
    )
    options, passthrough = parser.parse_known_args(argv)
    if options.contract:
        return run_contract_suite(passthrough)
    return run_tests(passthrough or None)


if __name__ == "__main__":  # pragma: no cover - manual execution utility
    raise SystemExit(main())
