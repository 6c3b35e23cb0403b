"""Tests for the crate registry and its construction entry point."""

import random
from pathlib import Path

import pytest

from crate_registry.errors import MetadataError, MissingResolveError
from crate_registry.metadata import BaseMetadataSource, CargoMetadata, CargoMetadataSource
from crate_registry.registry import Crates, get_all_crates


class StaticSource(BaseMetadataSource):
    """Metadata source returning a fixed document."""

    def __init__(self, metadata: CargoMetadata) -> None:
        self.metadata = metadata

    @property
    def source_name(self) -> str:
        return "static"

    def fetch(self) -> CargoMetadata:
        return self.metadata


class FailingSource(BaseMetadataSource):
    """Metadata source that always fails."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    @property
    def source_name(self) -> str:
        return "failing"

    def fetch(self) -> CargoMetadata:
        raise self.error


class TestCratesBuild:
    """Test suite for Crates.build."""

    @pytest.fixture
    def crates(self, metadata_dict) -> Crates:
        return Crates.build(metadata_dict["packages"])

    def test_sorted_by_name_and_version(self, crates: Crates) -> None:
        """Test that every adjacent pair is in ascending order."""
        records = crates.as_slice()
        for a, b in zip(records, records[1:]):
            assert a <= b

        assert [crate.name for crate in crates] == ["anyhow", "cc", "myapp", "serde", "serde"]

    def test_lookup_consistency(self, crates: Crates, metadata_dict) -> None:
        """Test that every package id resolves to the record carrying it."""
        for package in metadata_dict["packages"]:
            crate = crates.crate_by_id(package["id"])
            assert crate is not None
            assert crate.id == package["id"]

        for index, crate in enumerate(crates):
            assert crates.crate_by_id(crate.id) is crates[index]

    def test_lookup_missing_id(self, crates: Crates) -> None:
        """Test that an unknown id is not found."""
        assert crates.crate_by_id("openssl 1.0.0 (registry+https://example.com)") is None

    def test_equal_duplicates_retained(self, crates: Crates) -> None:
        """Test that vendored copies with the same name and version are both kept."""
        serdes = [crate for crate in crates if crate.name == "serde"]

        assert len(serdes) == 2
        assert serdes[0] == serdes[1]
        assert serdes[0].id != serdes[1].id
        assert crates.crate_by_id(serdes[0].id) is serdes[0]
        assert crates.crate_by_id(serdes[1].id) is serdes[1]

    @pytest.mark.parametrize("seed", [0, 7, 99])
    def test_input_order_does_not_matter(self, metadata_dict, seed) -> None:
        """Test that shuffled packages build the same ordered registry."""
        expected = [crate.id for crate in Crates.build(metadata_dict["packages"])]

        packages = list(metadata_dict["packages"])
        random.Random(seed).shuffle(packages)
        actual = [crate.id for crate in Crates.build(packages)]

        assert actual == expected

    def test_iteration_is_repeatable(self, crates: Crates) -> None:
        """Test that iterating twice yields the same sequence."""
        assert list(crates.iter()) == list(crates.iter())
        assert len(crates) == 5

    def test_as_slice_is_read_only(self, crates: Crates) -> None:
        """Test that the slice view cannot be mutated."""
        records = crates.as_slice()
        with pytest.raises(TypeError):
            records[0] = records[1]  # type: ignore

    def test_empty(self) -> None:
        """Test building from no packages."""
        crates = Crates.build([])
        assert len(crates) == 0
        assert list(crates) == []

    def test_malformed_package(self, make_package) -> None:
        """Test that a malformed package is rejected."""
        with pytest.raises(ValueError):
            Crates.build([make_package("ok"), make_package("bad", version="not-a-version")])


class TestGetAllCrates:
    """Test suite for get_all_crates."""

    def test_builds_registry_and_graph(self, metadata_dict) -> None:
        """Test the full construction from a metadata source."""
        source = StaticSource(CargoMetadata.from_dict(metadata_dict))

        crates = get_all_crates("/nonexistent/work/myapp", source=source)

        assert len(crates) == 5
        assert crates.resolved is not None
        assert len(crates.resolved.nodes) == 5
        for node in crates.resolved.nodes:
            assert crates.crate_by_id(node.id) is not None

    def test_missing_resolve(self, metadata_dict) -> None:
        """Test that metadata without a resolve graph raises a typed error."""
        metadata_dict["resolve"] = None
        source = StaticSource(CargoMetadata.from_dict(metadata_dict))

        with pytest.raises(MissingResolveError, match="does not contain a resolve graph"):
            get_all_crates("/nonexistent", source=source)

    def test_fetch_failure_wrapped(self) -> None:
        """Test that source errors are reported as metadata errors with the cause."""
        cause = MetadataError("cargo metadata exited with status 101: error: no Cargo.toml")

        with pytest.raises(MetadataError, match="failed to fetch metadata: cargo metadata exited") as exc_info:
            get_all_crates("/nonexistent", source=FailingSource(cause))

        assert exc_info.value.__cause__ is cause

    def test_missing_file_wrapped(self) -> None:
        """Test that a missing saved metadata file becomes a metadata error."""
        source = FailingSource(FileNotFoundError("Metadata file not found: /x.json"))

        with pytest.raises(MetadataError, match="failed to fetch metadata"):
            get_all_crates("/nonexistent", source=source)

    def test_malformed_package_wrapped(self, metadata_dict) -> None:
        """Test that malformed package data becomes a metadata error."""
        metadata_dict["packages"][0]["version"] = "one"
        source = StaticSource(CargoMetadata.from_dict(metadata_dict))

        with pytest.raises(MetadataError, match="invalid metadata from static"):
            get_all_crates("/nonexistent", source=source)

    def test_dependency_without_name_wrapped(self, metadata_dict) -> None:
        """Test that a nameless dependency entry becomes a metadata error."""
        metadata_dict["packages"][0]["dependencies"].append({"req": "^1.0"})
        source = StaticSource(CargoMetadata.from_dict(metadata_dict))

        with pytest.raises(MetadataError, match="invalid metadata from static") as exc_info:
            get_all_crates("/nonexistent", source=source)

        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_malformed_graph_edge_wrapped(self, metadata_dict) -> None:
        """Test that a non-object dep_kinds entry becomes a metadata error."""
        metadata_dict["resolve"]["nodes"][0]["deps"] = [
            {"name": "serde", "pkg": "serde", "dep_kinds": ["bad"]}
        ]
        source = StaticSource(CargoMetadata.from_dict(metadata_dict))

        with pytest.raises(MetadataError, match="Malformed resolve graph entry"):
            get_all_crates("/nonexistent", source=source)

    def test_default_source_runs_cargo(self, mocker, metadata_path: Path) -> None:
        """Test that the default source runs cargo on root/Cargo.toml."""
        run = mocker.patch("crate_registry.metadata.subprocess.run")
        run.return_value.stdout = metadata_path.read_text(encoding="utf-8")

        crates = get_all_crates("/work/myapp")

        assert len(crates) == 5
        cmd = run.call_args.args[0]
        assert cmd[1:] == CargoMetadataSource(Path("/work/myapp/Cargo.toml")).command()[1:]
        assert "--all-features" in cmd
