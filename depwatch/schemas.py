"""Pydantic schemas for npm registry documents."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _empty_versions() -> dict[str, dict[str, Any]]:
    """Return empty version map for default factory."""
    return {}


class PackumentSchema(BaseModel):
    """Schema for the npm registry package document ("packument").

    Only the fields needed to find the newest versions are kept.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str = ""
    dist_tags: dict[str, str] = Field(default_factory=dict, alias="dist-tags")
    versions: dict[str, dict[str, Any]] = Field(default_factory=_empty_versions)


__all__ = ["PackumentSchema"]
