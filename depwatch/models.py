"""Core data models for depwatch."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Iterable

DEPENDENCY_GROUPS = ("dependencies", "devDependencies", "optionalDependencies")


class Mode(str, Enum):
    """Which dependencies a classification keeps."""

    ALL = "all"
    OUTDATED_ONLY = "outdated_only"


@dataclass(frozen=True)
class DependencyRecord:
    """Registry status of a single declared dependency."""

    required: str | None = None
    stable: str | None = None
    latest: str | None = None
    warn: str | None = None  # non-fatal registry problem


# group name -> package name -> record
ClassificationReport = dict[str, dict[str, DependencyRecord]]


def empty_report() -> ClassificationReport:
    """Return a report with every dependency group present and empty."""
    return {group: {} for group in DEPENDENCY_GROUPS}


def count_outdated(report: ClassificationReport) -> int:
    """Count the packages listed across all groups of a report."""
    return sum(len(deps) for deps in report.values())


@dataclass
class Manifest:
    """A parsed package.json document.

    ``data`` is the whole decoded object; the dependency groups are views into
    it so a rewrite keeps every other key in place.
    """

    path: str
    data: dict[str, Any]

    def group(self, name: str) -> dict[str, Any]:
        """Return a dependency group, or an empty mapping when absent."""
        value = self.data.get(name)
        return value if isinstance(value, dict) else {}

    @property
    def dependencies(self) -> dict[str, Any]:
        return self.group("dependencies")

    @property
    def dev_dependencies(self) -> dict[str, Any]:
        return self.group("devDependencies")

    @property
    def optional_dependencies(self) -> dict[str, Any]:
        return self.group("optionalDependencies")


@dataclass
class ManifestFile:
    """A manifest travelling through the checker.

    ``contents`` is ``None`` or empty for an empty file, ``bytes`` for a buffered one,
    or a binary stream. ``outdated`` is filled in once dependencies have been
    classified.
    """

    path: str
    contents: bytes | BinaryIO | Iterable[bytes] | None = None
    outdated: ClassificationReport | None = field(default=None, repr=False)

    def is_null(self) -> bool:
        """True for a missing or zero-length buffer."""
        return self.contents is None or (self.is_buffer() and len(self.contents) == 0)

    def is_buffer(self) -> bool:
        return isinstance(self.contents, (bytes, bytearray, str))

    def is_stream(self) -> bool:
        return self.contents is not None and not self.is_buffer()
