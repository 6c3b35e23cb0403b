"""Normalized dependency resolution graph.

``cargo metadata`` reports the resolved graph with nodes and edges in
whatever order cargo produced them. Normalizing sorts every list so two
runs over the same project produce identical graphs, and identical
fingerprints, regardless of machine or cargo version ordering quirks.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Optional

from crate_registry.hashing import content_hash
from crate_registry.models import DependencyKind
from crate_registry.ordering import binary_search

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepKindInfo:
    """Kind and platform of one edge between resolved packages."""

    kind: DependencyKind = DependencyKind.NORMAL
    target: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "target": self.target}


@dataclass(frozen=True)
class NodeDep:
    """A resolved dependency edge.

    Attributes:
        name: Name the dependency is referred to by in the dependent crate.
        pkg: Package id of the resolved dependency.
        dep_kinds: Kinds of dependency this edge represents, sorted.
    """

    name: str
    pkg: str
    dep_kinds: tuple[DepKindInfo, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pkg": self.pkg,
            "dep_kinds": [kind.to_dict() for kind in self.dep_kinds],
        }


@dataclass(frozen=True)
class Node:
    """A resolved package and its outgoing edges.

    Attributes:
        id: Package id.
        dependencies: Package ids this package depends on, sorted.
        deps: Detailed dependency edges, sorted by (pkg, name).
        features: Features enabled on this package, sorted.
    """

    id: str
    dependencies: tuple[str, ...] = ()
    deps: tuple[NodeDep, ...] = ()
    features: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "dependencies": list(self.dependencies),
            "deps": [dep.to_dict() for dep in self.deps],
            "features": list(self.features),
        }


@dataclass(frozen=True)
class Resolve:
    """The full resolved dependency graph, with nodes sorted by id.

    Attributes:
        nodes: Resolved packages, sorted by id.
        root: Package id of the root crate, if the workspace has one.
    """

    nodes: tuple[Node, ...] = ()
    root: Optional[str] = None

    def node_by_id(self, id: str) -> Optional[Node]:
        """Look up a node by package id using binary search."""
        result = binary_search(self.nodes, id, key=attrgetter("id"))
        return self.nodes[result.index] if result.found else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "root": self.root,
        }

    def to_json(self) -> str:
        """Serialize to canonical JSON (sorted keys, compact separators)."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

    def fingerprint(self) -> int:
        """Return the 32-bit content hash of the canonical JSON form."""
        return content_hash(self.to_json().encode("utf-8"))


def _normalize_node_dep(data: Mapping[str, Any]) -> NodeDep:
    dep_kinds = list(
        DepKindInfo(
            kind=DependencyKind.from_metadata(kind.get("kind")),
            target=kind.get("target"),
        )
        for kind in data.get("dep_kinds") or ()
    )
    dep_kinds.sort(key=lambda info: (info.kind.value, info.target or ""))
    return NodeDep(name=data["name"], pkg=data["pkg"], dep_kinds=tuple(dep_kinds))


def _normalize_node(data: Mapping[str, Any]) -> Node:
    deps = sorted(
        (_normalize_node_dep(dep) for dep in data.get("deps") or ()),
        key=lambda dep: (dep.pkg, dep.name),
    )
    return Node(
        id=data["id"],
        dependencies=tuple(sorted(data.get("dependencies") or ())),
        deps=tuple(deps),
        features=tuple(sorted(data.get("features") or ())),
    )


def normalize_resolve(raw: Mapping[str, Any]) -> Resolve:
    """Build a deterministic Resolve from cargo's raw ``resolve`` object.

    Nodes are sorted by package id, and each node's dependency ids,
    detailed edges and features are sorted as well.

    Args:
        raw: The ``resolve`` mapping from ``cargo metadata`` output.

    Returns:
        Normalized, immutable Resolve.

    Raises:
        ValueError: If a node or edge is missing a required field or is
            not an object.
    """
    try:
        nodes = sorted(
            (_normalize_node(node) for node in raw.get("nodes") or ()),
            key=attrgetter("id"),
        )
    except KeyError as e:
        raise ValueError(f"Resolve graph entry missing required field {e}") from e
    except (TypeError, AttributeError) as e:
        raise ValueError(f"Malformed resolve graph entry: {e}") from e

    logger.debug("Normalized resolve graph with %d nodes", len(nodes))
    return Resolve(nodes=tuple(nodes), root=raw.get("root"))
