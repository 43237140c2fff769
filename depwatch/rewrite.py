"""Manifest rewriting for outdated dependencies."""

import json
import logging

from .errors import MissingVersion
from .models import ClassificationReport, Manifest

logger = logging.getLogger(__name__)


def rewrite_manifest(
    manifest: Manifest,
    report: ClassificationReport,
    prefix: str,
    include_unstable: bool = False,
) -> Manifest:
    """Update manifest constraints to the versions found in a report.

    Every package listed in ``report`` gets ``prefix + version`` as its new
    constraint. The manifest is modified in place and returned.

    Args:
        manifest: Manifest to update
        report: Outdated dependencies per group
        prefix: Range operator put before the version, e.g. "^" or "~"
        include_unstable: Use the latest version instead of the latest stable

    Returns:
        The same Manifest object

    Raises:
        MissingVersion: a listed package has no version to update to
    """
    field_name = "latest" if include_unstable else "stable"

    for group, records in report.items():
        if not records:
            continue

        declared = manifest.data.get(group)
        if not isinstance(declared, dict):
            continue

        for name, record in records.items():
            if name not in declared:
                continue

            version = getattr(record, field_name)
            if not version:
                raise MissingVersion(name, field_name)

            new_spec = f"{prefix}{version}"
            logger.debug("%s: %s %s -> %s", manifest.path, name, declared[name], new_spec)
            declared[name] = new_spec

    return manifest


def serialize_manifest(manifest: Manifest) -> bytes:
    """Serialize a manifest back to package.json bytes (2-space indent)."""
    return json.dumps(manifest.data, indent=2, ensure_ascii=False).encode("utf-8")
