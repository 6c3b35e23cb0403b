"""Exceptions raised while building the crate registry."""


class RegistryError(Exception):
    """Base class for crate registry errors."""


class MetadataError(RegistryError):
    """Crate metadata could not be obtained from the metadata source."""


class MissingResolveError(MetadataError):
    """Fetched metadata did not include a dependency resolution graph."""

    def __init__(self, source_name: str) -> None:
        super().__init__(
            f"metadata from {source_name} does not contain a resolve graph"
        )
        self.source_name = source_name
