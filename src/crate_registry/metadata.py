"""Sources of raw ``cargo metadata`` output.

Metadata sources obtain the package list and resolve graph for a Cargo
workspace, either by running cargo or by reading previously saved output.
"""

import json
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from crate_registry.errors import MetadataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CargoMetadata:
    """Raw output of ``cargo metadata --format-version 1``.

    Attributes:
        packages: Package mappings, in the order cargo reported them.
        resolve: Raw resolve graph, or None if cargo did not resolve.
        workspace_root: Root directory of the workspace.
        workspace_members: Package ids of the workspace members.
    """

    packages: list[dict[str, Any]] = field(default_factory=list)
    resolve: Optional[dict[str, Any]] = None
    workspace_root: Optional[str] = None
    workspace_members: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CargoMetadata":
        """Build from a decoded ``cargo metadata`` document.

        Raises:
            ValueError: If the document has no ``packages`` array.
        """
        packages = data.get("packages")
        if not isinstance(packages, list):
            raise ValueError("cargo metadata output is missing the 'packages' array")

        return cls(
            packages=packages,
            resolve=data.get("resolve"),
            workspace_root=data.get("workspace_root"),
            workspace_members=list(data.get("workspace_members") or []),
        )

    @classmethod
    def from_json(cls, text: str) -> "CargoMetadata":
        """Parse ``cargo metadata`` JSON text.

        Raises:
            ValueError: If the text is not valid JSON or not metadata.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid cargo metadata JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("cargo metadata JSON must be an object")

        return cls.from_dict(data)


class BaseMetadataSource(ABC):
    """Abstract base class for metadata sources."""

    @abstractmethod
    def fetch(self) -> CargoMetadata:
        """Fetch crate metadata.

        Returns:
            CargoMetadata for the workspace.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human-readable name for log and error messages."""
        ...


class CargoMetadataSource(BaseMetadataSource):
    """Runs ``cargo metadata`` for a manifest.

    By default all features are enabled so the registry covers every crate
    that could end up in a build.

    Attributes:
        manifest_path: Path to the workspace's Cargo.toml.
        all_features: Pass ``--all-features``.
        no_default_features: Pass ``--no-default-features``.
        features: Features to enable with ``--features``.
        offline: Pass ``--offline`` so cargo does not touch the network.
        cargo: Cargo binary. Defaults to the ``CARGO`` environment variable,
            then ``cargo`` on PATH.
    """

    def __init__(
        self,
        manifest_path: Path,
        all_features: bool = True,
        no_default_features: bool = False,
        features: Sequence[str] = (),
        offline: bool = False,
        cargo: Optional[str] = None,
    ) -> None:
        self.manifest_path = manifest_path
        self.all_features = all_features
        self.no_default_features = no_default_features
        self.features = tuple(features)
        self.offline = offline
        self.cargo = cargo or os.environ.get("CARGO") or "cargo"

    @property
    def source_name(self) -> str:
        return f"cargo metadata ({self.manifest_path})"

    def command(self) -> list[str]:
        """Return the cargo command line this source runs."""
        cmd = [
            self.cargo,
            "metadata",
            "--format-version",
            "1",
            "--manifest-path",
            str(self.manifest_path),
        ]
        if self.all_features:
            cmd.append("--all-features")
        if self.no_default_features:
            cmd.append("--no-default-features")
        if self.features:
            cmd.extend(["--features", ",".join(self.features)])
        if self.offline:
            cmd.append("--offline")
        return cmd

    def fetch(self) -> CargoMetadata:
        """Run cargo and parse its output.

        Raises:
            MetadataError: If cargo cannot be run, exits with an error, or
                prints something that is not cargo metadata.
        """
        cmd = self.command()
        logger.debug("Running %s", " ".join(cmd))

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise MetadataError(f"cargo executable not found: {self.cargo}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise MetadataError(
                f"cargo metadata exited with status {e.returncode}: {stderr}"
            ) from e

        try:
            return CargoMetadata.from_json(completed.stdout)
        except ValueError as e:
            raise MetadataError(str(e)) from e


class JsonMetadataSource(BaseMetadataSource):
    """Reads ``cargo metadata`` output saved to a JSON file.

    Attributes:
        path: Path to the saved JSON document.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def source_name(self) -> str:
        return str(self.path)

    def fetch(self) -> CargoMetadata:
        """Read and parse the saved metadata.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the content is not valid cargo metadata.
        """
        if not self.path.exists():
            raise FileNotFoundError(f"Metadata file not found: {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            return CargoMetadata.from_json(f.read())
