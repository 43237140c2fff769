"""Dependency classification across the three manifest groups."""

import asyncio
import logging

from .config import QueryOptions
from .errors import ClassificationFailed
from .models import DEPENDENCY_GROUPS, ClassificationReport, DependencyRecord, Manifest, Mode, count_outdated
from .resolve_node import RegistryClient, is_outdated

logger = logging.getLogger(__name__)


class DependencyClassifier:
    """Query a registry for every dependency group and build a report."""

    def __init__(self, client: RegistryClient, options: QueryOptions | None = None):
        """Initialize classifier.

        Args:
            client: Registry client answering the per-group queries
            options: Base query options; group selectors are set per query
        """
        self.client = client
        self.options = options or QueryOptions()

    async def classify(self, manifest: Manifest, mode: Mode = Mode.OUTDATED_ONLY) -> ClassificationReport:
        """Classify a manifest's dependencies.

        The three group queries run concurrently. The first failure aborts
        the classification; the other queries are left to finish and their
        results are dropped.

        Args:
            manifest: Manifest to classify
            mode: Keep every dependency, or only the outdated ones

        Returns:
            Report holding all three groups

        Raises:
            ClassificationFailed: a registry query failed
        """
        queries = [self._query_group(manifest, group) for group in DEPENDENCY_GROUPS]
        report: ClassificationReport = {}
        try:
            results = await asyncio.gather(*queries)
            for group, records in zip(DEPENDENCY_GROUPS, results):
                if mode is Mode.OUTDATED_ONLY:
                    records = {
                        name: record
                        for name, record in records.items()
                        if is_outdated(record, stable=self.options.stable, loose=self.options.loose)
                    }
                report[group] = records
        except ClassificationFailed:
            raise
        except Exception as e:
            raise ClassificationFailed(e) from e

        logger.info("%s: %d dependencies (%s)", manifest.path, count_outdated(report), mode.value)
        return report

    async def get_dependencies(self, manifest: Manifest) -> ClassificationReport:
        """Return the status of every dependency."""
        return await self.classify(manifest, Mode.ALL)

    async def get_updated_dependencies(self, manifest: Manifest) -> ClassificationReport:
        """Return the status of outdated dependencies only."""
        return await self.classify(manifest, Mode.OUTDATED_ONLY)

    async def _query_group(self, manifest: Manifest, group: str) -> dict[str, DependencyRecord]:
        options = self.options.for_group(group)
        logger.debug("Querying %s of %s", group, manifest.path)
        records = await self.client.query(manifest, options)
        return {name: record for name, record in records.items() if name not in options.ignore}
