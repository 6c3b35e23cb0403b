"""Crate Registry - deterministic view of a Cargo dependency graph.

This package builds a sorted, indexed registry of the crates in a Cargo
workspace's resolved dependency graph and derives license evidence for
each crate, for use by license auditing and crate banning policies.
"""

__version__ = "0.1.0"

from crate_registry.errors import MetadataError, MissingResolveError, RegistryError
from crate_registry.graph import Node, NodeDep, Resolve, normalize_resolve
from crate_registry.hashing import content_hash
from crate_registry.licenses import LicenseField, LicenseInfo, LicenseSource
from crate_registry.models import CrateDetails, CrateKey, Dependency, LintLevel
from crate_registry.ordering import SearchResult, binary_search, contains
from crate_registry.registry import Crates, get_all_crates

__all__ = [
    "__version__",
    "CrateDetails",
    "CrateKey",
    "Crates",
    "Dependency",
    "LicenseField",
    "LicenseInfo",
    "LicenseSource",
    "LintLevel",
    "MetadataError",
    "MissingResolveError",
    "Node",
    "NodeDep",
    "RegistryError",
    "Resolve",
    "SearchResult",
    "binary_search",
    "contains",
    "content_hash",
    "get_all_crates",
    "normalize_resolve",
]
