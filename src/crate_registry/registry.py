"""Sorted, indexed registry of every crate in a Cargo workspace's graph."""

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any, Optional, Union

from crate_registry.errors import MetadataError, MissingResolveError
from crate_registry.graph import Resolve, normalize_resolve
from crate_registry.metadata import BaseMetadataSource, CargoMetadataSource
from crate_registry.models import CrateDetails

logger = logging.getLogger(__name__)


class Crates:
    """All resolved crates, in canonical ``(name, version)`` order.

    The crate list and the id index are built together and never change
    afterwards, so a Crates instance is safe to share between readers.

    Attributes:
        resolved: Normalized resolve graph, when built by ``get_all_crates``.
    """

    def __init__(
        self,
        crates: Iterable[CrateDetails],
        resolved: Optional[Resolve] = None,
    ) -> None:
        """Sort crates and index them by id.

        Crates that compare equal (same name and version, different ids)
        are all kept, ordered by id so the result does not depend on the
        order they were supplied in.

        Args:
            crates: Crate details in any order.
            resolved: Optional normalized resolve graph to carry along.
        """
        self._crates: tuple[CrateDetails, ...] = tuple(
            sorted(crates, key=lambda crate: (crate.key, crate.id))
        )
        self._crate_map: dict[str, int] = {
            crate.id: index for index, crate in enumerate(self._crates)
        }
        self.resolved = resolved

    @classmethod
    def build(
        cls,
        packages: Iterable[Mapping[str, Any]],
        resolved: Optional[Resolve] = None,
    ) -> "Crates":
        """Build the registry from raw ``cargo metadata`` packages.

        Args:
            packages: Package mappings from the metadata ``packages`` array.
            resolved: Optional normalized resolve graph to carry along.

        Returns:
            Crates sorted by (name, version) with an id index.

        Raises:
            ValueError: If a package entry is malformed.
        """
        crates = cls(
            (CrateDetails.from_package(package) for package in packages),
            resolved=resolved,
        )
        logger.info("Built registry of %d crates", len(crates))
        return crates

    def crate_by_id(self, id: str) -> Optional[CrateDetails]:
        """Return the crate with the given package id, or None."""
        index = self._crate_map.get(id)
        return self._crates[index] if index is not None else None

    def iter(self) -> Iterator[CrateDetails]:
        return iter(self._crates)

    def as_slice(self) -> Sequence[CrateDetails]:
        """Return the ordered crates for direct indexed access."""
        return self._crates

    def __iter__(self) -> Iterator[CrateDetails]:
        return iter(self._crates)

    def __len__(self) -> int:
        return len(self._crates)

    def __getitem__(self, index: int) -> CrateDetails:
        return self._crates[index]


def get_all_crates(
    root: Union[str, Path],
    source: Optional[BaseMetadataSource] = None,
) -> Crates:
    """Fetch metadata for a workspace and build its crate registry.

    Args:
        root: Directory containing the workspace's Cargo.toml.
        source: Metadata source to use instead of running cargo on
            ``root / "Cargo.toml"``.

    Returns:
        Crates with the normalized resolve graph attached.

    Raises:
        MetadataError: If metadata could not be fetched or is malformed.
        MissingResolveError: If the metadata lacks a resolve graph.
    """
    if source is None:
        source = CargoMetadataSource(Path(root) / "Cargo.toml")

    try:
        metadata = source.fetch()
    except (MetadataError, OSError, ValueError) as e:
        raise MetadataError(f"failed to fetch metadata: {e}") from e

    if metadata.resolve is None:
        raise MissingResolveError(source.source_name)

    try:
        resolved = normalize_resolve(metadata.resolve)
        crates = Crates.build(metadata.packages, resolved=resolved)
    except ValueError as e:
        raise MetadataError(
            f"invalid metadata from {source.source_name}: {e}"
        ) from e

    logger.info(
        "Resolved %d crates (%d graph nodes) from %s",
        len(crates),
        len(resolved.nodes),
        source.source_name,
    )
    return crates
