"""npm registry lookups and staleness rules."""

import asyncio
import functools
import logging
import re
from typing import Any, Protocol
from urllib.parse import quote

import httpx
import nodesemver
from pydantic import ValidationError

from .config import DEFAULT_TIMEOUT, QueryOptions
from .errors import RegistryQueryFailed
from .models import DependencyRecord, Manifest
from .schemas import PackumentSchema

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "https://registry.npmjs.org"

_SCM_PREFIXES = (
    "git:",
    "git+ssh:",
    "git+http:",
    "git+https:",
    "git+file:",
    "http:",
    "https:",
    "github:",
    "gitlab:",
    "bitbucket:",
)
# GitHub shorthand such as "user/repo" or "user/repo#v1.0.0"
_RE_GITHUB_SHORTHAND = re.compile(r"^[\w.-]+/[\w.-]+(#.*)?$")
_ANY_VERSION = ("", "*", "latest")
# One comparator of a normalized range, e.g. ">=1.0.0" or "<2.0.0-0"
_RE_COMPARATOR = re.compile(r"^(<=|>=|<|>|=)?\s*(\S+)$")


class RegistryClient(Protocol):
    """Anything that can look up the versions of a manifest's dependencies."""

    async def query(
        self, manifest: Manifest, options: QueryOptions
    ) -> dict[str, DependencyRecord]:
        """Return a record per package of the group selected by ``options``."""
        ...


def is_scm(required: str) -> bool:
    """Check if a constraint points at a source-control repository."""
    spec = required.strip()
    if spec.startswith(_SCM_PREFIXES):
        return True
    return bool(_RE_GITHUB_SHORTHAND.match(spec))


def is_outdated(record: DependencyRecord, stable: bool = True, loose: bool = True) -> bool:
    """Check if a declared constraint falls behind the newest version.

    Args:
        record: Registry status of the dependency
        stable: Compare against the latest stable version instead of latest
        loose: Accept loosely formatted versions and ranges

    Returns:
        True when the constraint cannot be satisfied by the target version
    """
    if record.warn:
        return False

    required = (record.required or "*").strip()
    if required in _ANY_VERSION:
        return False

    target = record.stable if stable else record.latest
    if not target:
        return False

    if not nodesemver.valid_range(required, loose):
        return True
    if nodesemver.satisfies(target, required, loose):
        return False

    if stable:
        # An older stable release is not a reason to downgrade
        return greater_than_range(target, required, loose)
    return True


def greater_than_range(version: str, range_: str, loose: bool = True) -> bool:
    """Check if a version is above every version a range admits.

    Works on the normalized range from ``nodesemver.valid_range``, where each
    ``||`` alternative is a list of plain comparators.
    """
    normalized = nodesemver.valid_range(range_, loose)
    if not normalized or nodesemver.satisfies(version, range_, loose):
        return False

    for alternative in normalized.split("||"):
        upper = None
        for comparator in alternative.split():
            match = _RE_COMPARATOR.match(comparator)
            if not match or match.group(2) == "*":
                continue
            operator, bound = match.group(1) or "=", match.group(2)
            if operator in (">", ">="):
                continue
            inclusive = operator in ("<=", "=")
            if upper is None or nodesemver.compare(bound, upper[0], loose) < 0:
                upper = (bound, inclusive)

        if upper is None:
            return False
        bound, inclusive = upper
        order = nodesemver.compare(version, bound, loose)
        if order < 0 or (order == 0 and inclusive):
            return False

    return True


def newest_versions(
    packument: PackumentSchema, loose: bool = True
) -> tuple[str | None, str | None]:
    """Find the newest stable and newest overall versions of a package.

    Returns:
        Tuple of (stable, latest); either may be None
    """
    parsed = []
    for version_str in packument.versions:
        version = nodesemver.parse(version_str, loose)
        if version is not None:
            parsed.append((version_str, version))

    if not parsed:
        return None, packument.dist_tags.get("latest")

    by_version = functools.cmp_to_key(lambda a, b: nodesemver.compare(a[0], b[0], loose))
    parsed.sort(key=by_version)

    latest = parsed[-1][0]
    stable = next((v for v, sv in reversed(parsed) if not sv.prerelease), None)
    return stable, latest


class NpmRegistryClient:
    """Registry client backed by the npm registry HTTP API."""

    def __init__(
        self,
        registry: str = DEFAULT_REGISTRY,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrency: int = 6,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize npm registry client.

        Args:
            registry: Registry base URL, used unless a query overrides it
            timeout: Request timeout in seconds
            max_concurrency: Maximum concurrent requests per query
            transport: Optional httpx transport, mainly for tests
        """
        self.registry = registry
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self._transport = transport

    async def query(
        self, manifest: Manifest, options: QueryOptions
    ) -> dict[str, DependencyRecord]:
        """Look up every package of the group selected by ``options``.

        Raises:
            RegistryQueryFailed: on transport errors, malformed responses,
                and on 404 / dependency type / SCM problems made fatal by
                ``options``
        """
        group = options.group
        declared = manifest.data.get(group)
        if declared is None:
            return {}

        if not isinstance(declared, dict):
            detail = f"{group} must be an object"
            if options.error_dep_type:
                raise RegistryQueryFailed(RegistryQueryFailed.DEP_TYPE_MISMATCH, None, detail)
            logger.warning("%s: %s", manifest.path, detail)
            return {}

        records: dict[str, DependencyRecord] = {}
        lookups: dict[str, str] = {}
        for name, required in declared.items():
            if name in options.ignore:
                continue

            if not isinstance(required, str):
                detail = "Non-string dependency version"
                if options.error_dep_type:
                    raise RegistryQueryFailed(RegistryQueryFailed.DEP_TYPE_MISMATCH, name, detail)
                records[name] = DependencyRecord(required=None, warn=detail)
                continue

            if is_scm(required):
                detail = "SCM dependency"
                if options.error_scm:
                    raise RegistryQueryFailed(RegistryQueryFailed.SCM_HOSTED, name, detail)
                logger.warning("%s: %s is an %s, skipping", manifest.path, name, detail)
                records[name] = DependencyRecord(required=required, warn=detail)
                continue

            lookups[name] = required

        if not lookups:
            return records

        registry = (options.registry or self.registry).rstrip("/")
        semaphore = asyncio.Semaphore(self.max_concurrency)
        logger.debug("Querying %d %s from %s", len(lookups), group, registry)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:

            async def lookup(name: str, required: str) -> tuple[str, DependencyRecord]:
                async with semaphore:
                    packument = await self._fetch_packument(client, registry, name)
                if packument is None:
                    detail = "Package not found"
                    if options.error_404:
                        raise RegistryQueryFailed(RegistryQueryFailed.NOT_FOUND, name, detail)
                    logger.warning("%s: %s not found in %s", manifest.path, name, registry)
                    return name, DependencyRecord(required=required, warn=detail)

                stable, latest = newest_versions(packument, options.loose)
                return name, DependencyRecord(required=required, stable=stable, latest=latest)

            results = await asyncio.gather(
                *(lookup(name, required) for name, required in lookups.items()),
                return_exceptions=True,
            )

        for result in results:
            if isinstance(result, BaseException):
                raise result
        records.update(results)
        # Keep the manifest's declaration order
        return {name: records[name] for name in declared if name in records}

    async def _fetch_packument(
        self, client: httpx.AsyncClient, registry: str, name: str
    ) -> PackumentSchema | None:
        """Fetch package document from the registry.

        Returns:
            Parsed package document or None if not found
        """
        url = f"{registry}/{quote(name, safe='@')}"

        try:
            response = await client.get(url, headers={"Accept": "application/json"})
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data: Any = response.json()
        except httpx.TimeoutException as e:
            raise RegistryQueryFailed(
                RegistryQueryFailed.TRANSPORT, name, f"Timeout fetching {url}"
            ) from e
        except httpx.HTTPError as e:
            raise RegistryQueryFailed(
                RegistryQueryFailed.TRANSPORT, name, f"HTTP error fetching {url}: {e}"
            ) from e
        except ValueError as e:
            raise RegistryQueryFailed(
                RegistryQueryFailed.TRANSPORT, name, f"Malformed registry response from {url}"
            ) from e

        try:
            return PackumentSchema.model_validate(data)
        except ValidationError as e:
            raise RegistryQueryFailed(
                RegistryQueryFailed.TRANSPORT, name, f"Malformed registry response from {url}"
            ) from e
