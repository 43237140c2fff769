"""Per-manifest checking pipeline."""

import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from enum import Enum
from typing import Any

from rich.console import Console

from .classify import DependencyClassifier
from .config import CheckerOptions, QueryOptions, Reporter
from .errors import ClassificationFailed, TooManyOutdated
from .models import ClassificationReport, Manifest, ManifestFile, Mode, count_outdated
from .parse_node import parse_file
from .report import ConsoleReporter, format_report
from .resolve_node import DEFAULT_REGISTRY, NpmRegistryClient, RegistryClient
from .rewrite import rewrite_manifest, serialize_manifest

logger = logging.getLogger(__name__)


class State(str, Enum):
    """Pipeline stages of a single manifest check."""

    START = "start"
    PARSED = "parsed"
    CLASSIFIED = "classified"
    REWRITTEN = "rewritten"
    REPORTED = "reported"
    DONE = "done"
    FAILED = "failed"


class Checker:
    """Check manifests for outdated dependencies, one file at a time.

    Each file is parsed, its dependencies classified against the registry,
    optionally rewritten, reported, and finally checked against the
    outdated-count threshold.

    ``state`` describes the most recent ``process`` call only. It is reset at
    the start of each call, so concurrent calls on one checker overwrite it.
    """

    def __init__(
        self,
        options: CheckerOptions | None = None,
        client: RegistryClient | None = None,
        console: Console | None = None,
    ):
        """Initialize checker.

        Args:
            options: Checker settings
            client: Registry client; defaults to the npm registry
            console: Console used by the default reporter
        """
        self.options = options or CheckerOptions()
        self.client = client or NpmRegistryClient(
            registry=self.options.registry or DEFAULT_REGISTRY,
            timeout=self.options.timeout,
        )
        self.classifier = DependencyClassifier(self.client, QueryOptions.from_checker(self.options))
        self._report = _resolve_reporter(self.options.reporter, console)
        self.state = State.START

    def parse_manifest(self, file: ManifestFile) -> Manifest:
        return parse_file(file)

    async def get_dependencies(self, manifest: Manifest) -> ClassificationReport:
        return await self.classifier.classify(manifest, Mode.ALL)

    async def get_updated_dependencies(self, manifest: Manifest) -> ClassificationReport:
        return await self.classifier.classify(manifest, Mode.OUTDATED_ONLY)

    async def process(self, file: ManifestFile) -> ManifestFile:
        """Run the whole pipeline on a single manifest file.

        On success the file carries the outdated report in ``outdated`` and,
        when an update policy is set, the rewritten manifest in ``contents``.
        The contents are left untouched when any stage fails.

        Raises:
            ManifestError: the manifest could not be parsed
            ClassificationFailed: a registry query failed
            MissingVersion: the registry returned no version to update to
            TooManyOutdated: the outdated count reached ``error_dep_count``
        """
        self.state = State.START
        try:
            output = await self._run(file)
        except Exception as e:
            self.state = State.FAILED
            logger.debug("%s: check failed: %s", file.path, e)
            raise

        if output is not None:
            file.contents = output
        self.state = State.DONE
        return file

    async def transform(
        self, files: Iterable[ManifestFile] | AsyncIterable[ManifestFile]
    ) -> AsyncIterator[ManifestFile]:
        """Process files in order, yielding each one once it passes.

        Stops at the first failing file.
        """
        if isinstance(files, AsyncIterable):
            async for file in files:
                yield await self.process(file)
        else:
            for file in files:
                yield await self.process(file)

    async def _run(self, file: ManifestFile) -> bytes | None:
        manifest = self.parse_manifest(file)
        self.state = State.PARSED

        try:
            report = await self.get_updated_dependencies(manifest)
        except ClassificationFailed as e:
            raise ClassificationFailed(e.cause, file.path) from e.cause
        file.outdated = report
        self.state = State.CLASSIFIED

        output = None
        update = self.options.update
        if update.enabled:
            rewrite_manifest(manifest, report, update.prefix, self.options.unstable)
            output = serialize_manifest(manifest)
            self.state = State.REWRITTEN

        if self._report is not None:
            self._report(file)
        self.state = State.REPORTED

        count = count_outdated(report)
        threshold = self.options.error_dep_count
        if threshold > 0 and count >= threshold:
            raise TooManyOutdated(count)

        return output


def check(options: CheckerOptions | None = None, **kwargs: Any) -> Checker:
    """Build a Checker from options or from CheckerOptions keyword arguments."""
    if options is None:
        options = CheckerOptions(**kwargs)
    elif kwargs:
        raise TypeError("Pass either options or keyword arguments, not both")
    return Checker(options)


def _resolve_reporter(
    reporter: Reporter, console: Console | None
) -> Callable[[ManifestFile], None] | None:
    if reporter.kind == Reporter.DISABLED:
        return None
    if reporter.kind == Reporter.DEFAULT:
        return ConsoleReporter(console).log

    sink = reporter.sink
    if callable(getattr(sink, "log", None)):
        return sink.log
    if callable(sink):
        return lambda file: sink(format_report(file.outdated, file.path))
    raise TypeError(f"Reporter sink must be callable or have a log() method: {sink!r}")
