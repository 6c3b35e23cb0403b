"""Core data models for crate_registry.

This module defines the records built from ``cargo metadata`` output: crate
details, their dependency requirements, and the lightweight key used to
query sorted crate lists.
"""

import functools
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum, StrEnum
from pathlib import Path
from typing import Any, NamedTuple, Optional

import semver

from crate_registry.licenses import LicenseField, LicenseInfo, license_evidence


class LintLevel(StrEnum):
    """Severity a policy check reports a finding with."""

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"

    @classmethod
    def default(cls) -> "LintLevel":
        return cls.WARN


class DependencyKind(str, Enum):
    """Section of the manifest a dependency is declared in."""

    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"

    @classmethod
    def from_metadata(cls, kind: Optional[str]) -> "DependencyKind":
        """Map cargo's ``kind`` value, where null means a normal dependency."""
        return cls(kind) if kind else cls.NORMAL


@dataclass(frozen=True)
class Dependency:
    """A dependency requirement declared in a crate's manifest.

    Attributes:
        name: Name of the required crate.
        req: Version requirement (e.g., "^1.0").
        kind: Manifest section the requirement appears in.
        optional: True if the dependency is behind a feature.
        uses_default_features: False if declared with ``default-features = false``.
        features: Features explicitly enabled on the dependency.
        target: Platform cfg the dependency is restricted to, if any.
        rename: Local name when declared with ``package = ...``.
        source: Registry or git source of the dependency.
    """

    name: str
    req: str = "*"
    kind: DependencyKind = DependencyKind.NORMAL
    optional: bool = False
    uses_default_features: bool = True
    features: tuple[str, ...] = ()
    target: Optional[str] = None
    rename: Optional[str] = None
    source: Optional[str] = None

    @classmethod
    def from_metadata(cls, data: Mapping[str, Any]) -> "Dependency":
        """Build a requirement from one entry of a package's ``dependencies``.

        Raises:
            ValueError: If the entry is not a mapping, lacks a name, or has
                an unknown kind.
        """
        try:
            return cls(
                name=data["name"],
                req=data.get("req", "*"),
                kind=DependencyKind.from_metadata(data.get("kind")),
                optional=data.get("optional", False),
                uses_default_features=data.get("uses_default_features", True),
                features=tuple(data.get("features") or ()),
                target=data.get("target"),
                rename=data.get("rename"),
                source=data.get("source"),
            )
        except KeyError as e:
            raise ValueError(f"Dependency missing required field {e}: {data!r}") from e
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Malformed dependency entry {data!r}: {e}") from e


class CrateKey(NamedTuple):
    """Name and version of a crate, ordered the same way as CrateDetails."""

    name: str
    version: semver.Version


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class CrateDetails:
    """A resolved crate version.

    Crates are equal and ordered by ``(name, version)`` only. Two records
    with different ids (vendored or patched copies) but the same name and
    version compare equal. Use ``id`` when the exact instance matters.

    Attributes:
        name: Crate name.
        id: Opaque package id assigned by cargo.
        version: Semantic version.
        authors: Declared authors.
        repository: Optional source repository URL.
        description: Optional crate description.
        root: Directory containing the crate's Cargo.toml.
        license: Declared license expression.
        license_file: Declared license file, relative to ``root``.
        deps: Dependency requirements, sorted by name.
    """

    name: str = ""
    id: str = ""
    version: semver.Version = field(default_factory=lambda: semver.Version(0, 1, 0))
    authors: tuple[str, ...] = ()
    repository: Optional[str] = None
    description: Optional[str] = None
    root: Optional[Path] = None
    license: LicenseField = field(default_factory=LicenseField)
    license_file: Optional[Path] = None
    deps: tuple[Dependency, ...] = ()

    @classmethod
    def from_package(cls, package: Mapping[str, Any]) -> "CrateDetails":
        """Build crate details from one ``cargo metadata`` package entry.

        Args:
            package: Package mapping from the ``packages`` array.

        Returns:
            CrateDetails with the license parsed and deps sorted by name.

        Raises:
            ValueError: If a required field is missing, the version is not
                valid semver, or a dependency entry is malformed.
        """
        if not isinstance(package, Mapping):
            raise ValueError(f"Package entry is not an object: {package!r}")

        for required in ("name", "id", "version", "manifest_path"):
            if required not in package:
                raise ValueError(
                    f"Package missing required field '{required}': "
                    f"{package.get('id') or package.get('name', '<unknown>')}"
                )

        try:
            version = semver.Version.parse(package["version"])
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Invalid version '{package['version']}' for package {package['id']}"
            ) from e

        try:
            deps = [Dependency.from_metadata(dep) for dep in package.get("dependencies") or ()]
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid dependencies for package {package['id']}: {e}") from e
        deps.sort(key=lambda dep: dep.name)

        license_file = package.get("license_file")

        return cls(
            name=package["name"],
            id=package["id"],
            version=version,
            authors=tuple(package.get("authors") or ()),
            repository=package.get("repository"),
            description=package.get("description"),
            root=Path(package["manifest_path"]).parent,
            license=LicenseField.parse(package.get("license")),
            license_file=Path(license_file) if license_file else None,
            deps=tuple(deps),
        )

    @property
    def key(self) -> CrateKey:
        """Return the (name, version) key this crate is ordered by."""
        return CrateKey(self.name, self.version)

    def licenses(self) -> Iterator[LicenseInfo]:
        """Yield license evidence for this crate.

        See ``crate_registry.licenses.license_evidence``.
        """
        return license_evidence(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CrateDetails):
            return NotImplemented
        return self.key == other.key

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CrateDetails):
            return NotImplemented
        return self.key < other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return f"{self.name} {self.version}"
