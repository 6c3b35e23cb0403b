"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def metadata_path() -> Path:
    """Return path to the saved cargo metadata fixture."""
    return FIXTURES_DIR / "metadata.json"


@pytest.fixture
def metadata_dict(metadata_path: Path) -> dict[str, Any]:
    """Return the decoded cargo metadata fixture."""
    return json.loads(metadata_path.read_text(encoding="utf-8"))


@pytest.fixture
def make_package() -> Callable[..., dict[str, Any]]:
    """Return a factory for raw cargo metadata package entries."""

    def _make_package(
        name: str,
        version: str = "1.0.0",
        id: Optional[str] = None,
        manifest_path: str = "/nonexistent/Cargo.toml",
        **extra: Any,
    ) -> dict[str, Any]:
        package = {
            "name": name,
            "version": version,
            "id": id or f"{name} {version} (registry+https://github.com/rust-lang/crates.io-index)",
            "manifest_path": manifest_path,
            "authors": [],
            "dependencies": [],
            "license": None,
            "license_file": None,
        }
        package.update(extra)
        return package

    return _make_package
