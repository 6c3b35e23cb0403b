"""License evidence for crates.

A crate's license can be known from three independent sources:

1. The ``license`` expression declared in its manifest.
2. Files in the crate's root directory whose names start with ``LICENSE``.
3. The ``license-file`` path explicitly declared in its manifest.

``license_evidence`` combines them into one ordered sequence so policy code
can weigh each kind of evidence differently.
"""

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from license_expression import ExpressionError, get_spdx_licensing

if TYPE_CHECKING:
    from crate_registry.models import CrateDetails

logger = logging.getLogger(__name__)

SPDX = get_spdx_licensing()

LICENSE_FILE_PREFIX = "LICENSE"


class LicenseFieldState(str, Enum):
    """State of a declared license field."""

    ABSENT = "absent"
    PARSED = "parsed"
    UNPARSEABLE = "unparseable"


@dataclass(frozen=True)
class LicenseField:
    """Normalized form of a crate's declared ``license`` expression.

    Attributes:
        state: Whether the field is absent, parsed, or unparseable.
        original: The declared expression as written in the manifest.
        identifiers: Atomic license identifiers (a license together with
            its ``WITH`` exception counts as one), in order of first
            appearance. Only populated when ``state`` is PARSED.
    """

    state: LicenseFieldState = LicenseFieldState.ABSENT
    original: Optional[str] = None
    identifiers: tuple[str, ...] = ()

    @classmethod
    def parse(cls, expression: Optional[str]) -> "LicenseField":
        """Decompose a declared license expression.

        Cargo still accepts ``/`` as a deprecated alternative to ``OR``,
        so it is rewritten before parsing. A license and its exception
        (``Apache-2.0 WITH LLVM-exception``) stay together as one item.

        Identifiers are normalized to their canonical SPDX keys, so an
        alias or deprecated form is reported under its current name
        (``GPL-2.0+`` becomes ``GPL-2.0-or-later``). The expression as
        written is kept in ``original``.

        Args:
            expression: Declared license string, or None.

        Returns:
            A LicenseField in the ABSENT, PARSED or UNPARSEABLE state.
        """
        if expression is None or not expression.strip():
            return cls()

        normalized = expression.replace("/", " OR ")
        try:
            parsed = SPDX.parse(normalized)
        except ExpressionError as e:
            logger.debug("Could not parse license expression '%s': %s", expression, e)
            return cls(state=LicenseFieldState.UNPARSEABLE, original=expression)

        if parsed is None:
            return cls(state=LicenseFieldState.UNPARSEABLE, original=expression)

        identifiers = tuple(
            symbol.render()
            for symbol in SPDX.license_symbols(parsed, unique=True, decompose=False)
        )
        return cls(
            state=LicenseFieldState.PARSED,
            original=expression,
            identifiers=identifiers,
        )

    def __iter__(self) -> Iterator[str]:
        if self.state is LicenseFieldState.PARSED:
            yield from self.identifiers
        elif self.state is LicenseFieldState.UNPARSEABLE and self.original:
            yield self.original

    def __bool__(self) -> bool:
        return self.state is not LicenseFieldState.ABSENT


class LicenseSource(str, Enum):
    """Where a piece of license evidence came from."""

    METADATA = "metadata"
    INFERRED_FILE = "inferred-file"
    EXPLICIT_FILE = "explicit-file"


@dataclass(frozen=True)
class LicenseInfo:
    """One piece of license evidence for a crate.

    Attributes:
        source: Kind of evidence.
        license: License identifier, set for METADATA evidence.
        path: License file path, set for INFERRED_FILE and EXPLICIT_FILE.
    """

    source: LicenseSource
    license: Optional[str] = None
    path: Optional[Path] = None

    @classmethod
    def metadata(cls, license: str) -> "LicenseInfo":
        return cls(source=LicenseSource.METADATA, license=license)

    @classmethod
    def inferred_file(cls, path: Path) -> "LicenseInfo":
        return cls(source=LicenseSource.INFERRED_FILE, path=path)

    @classmethod
    def explicit_file(cls, path: Path) -> "LicenseInfo":
        return cls(source=LicenseSource.EXPLICIT_FILE, path=path)

    def __str__(self) -> str:
        value = self.license if self.source is LicenseSource.METADATA else self.path
        return f"{self.source.value}: {value}"


class LicenseFileScan:
    """Candidate license files directly inside a directory.

    A scan over no directory is empty. Reading the directory is best
    effort: any OS error yields no files rather than propagating.
    Matches are yielded sorted by file name.
    """

    def __init__(self, directory: Optional[Path]) -> None:
        self.directory = directory

    def __iter__(self) -> Iterator[Path]:
        if self.directory is None:
            return

        try:
            with os.scandir(self.directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.debug("Unable to scan %s for license files: %s", self.directory, e)
            return

        for entry in entries:
            if entry.name.startswith(LICENSE_FILE_PREFIX) and _is_file(entry):
                yield self.directory / entry.name


def _is_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False


def license_evidence(crate: "CrateDetails") -> Iterator[LicenseInfo]:
    """Yield all license evidence for a crate.

    Order: declared identifiers, then inferred license files, then the
    explicit license file. An inferred file at the same path as the
    explicit file is skipped, so that file is only reported as explicit.
    Nothing is cached; every call rescans the crate's root.

    Args:
        crate: Crate to collect evidence for.

    Yields:
        LicenseInfo items in reporting order.
    """
    root = crate.root
    explicit: Optional[Path] = None
    if root is not None and crate.license_file is not None:
        explicit = root / crate.license_file

    for identifier in crate.license:
        yield LicenseInfo.metadata(identifier)

    for found in LicenseFileScan(root):
        if found == explicit:
            continue
        yield LicenseInfo.inferred_file(found)

    if explicit is not None:
        yield LicenseInfo.explicit_file(explicit)
