"""Checker and registry query configuration."""

import os
from dataclasses import dataclass, field, replace
from typing import Any

from .models import DEPENDENCY_GROUPS

# Environment variable prefix for overrides
_ENV_PREFIX = "DEPWATCH_"

DEFAULT_TIMEOUT = 30.0
DEFAULT_UPDATE_PREFIX = "^"


@dataclass(frozen=True)
class Reporter:
    """Where classification results are reported.

    ``disabled``: nothing is reported. ``default``: the rich console
    reporter. ``custom``: ``sink`` is either an object with a ``log(file)``
    method or a callable receiving the formatted report text.
    """

    kind: str = "default"
    sink: Any = None

    DISABLED = "disabled"
    DEFAULT = "default"
    CUSTOM = "custom"

    @classmethod
    def disabled(cls) -> "Reporter":
        return cls(kind=cls.DISABLED)

    @classmethod
    def default(cls) -> "Reporter":
        return cls(kind=cls.DEFAULT)

    @classmethod
    def custom(cls, sink: Any) -> "Reporter":
        if sink is None:
            raise ValueError("A custom reporter needs a sink")
        return cls(kind=cls.CUSTOM, sink=sink)

    @classmethod
    def coerce(cls, value: Any) -> "Reporter":
        """Build a Reporter from a bool, a sink or an existing Reporter."""
        if isinstance(value, Reporter):
            return value
        if value is None or value is False:
            return cls.disabled()
        if value is True:
            return cls.default()
        return cls.custom(value)

    @property
    def enabled(self) -> bool:
        return self.kind != self.DISABLED


@dataclass(frozen=True)
class UpdatePolicy:
    """How outdated constraints are rewritten; ``prefix`` None means never."""

    prefix: str | None = None

    @classmethod
    def disabled(cls) -> "UpdatePolicy":
        return cls()

    @classmethod
    def with_prefix(cls, prefix: str) -> "UpdatePolicy":
        return cls(prefix=prefix)

    @classmethod
    def coerce(cls, value: Any) -> "UpdatePolicy":
        """Build an UpdatePolicy from a bool, a prefix string or a policy."""
        if isinstance(value, UpdatePolicy):
            return value
        if value is None or value is False:
            return cls.disabled()
        if value is True:
            return cls.with_prefix(DEFAULT_UPDATE_PREFIX)
        if isinstance(value, str):
            return cls.with_prefix(value)
        raise TypeError(f"Unsupported update policy: {value!r}")

    @property
    def enabled(self) -> bool:
        return self.prefix is not None


@dataclass(frozen=True)
class CheckerOptions:
    """Top-level checker settings."""

    error_404: bool = False
    error_dep_count: int = 0
    error_dep_type: bool = False
    error_scm: bool = False
    ignore: tuple[str, ...] = ()
    registry: str | None = None
    reporter: Reporter = field(default_factory=Reporter.default)
    update: UpdatePolicy = field(default_factory=UpdatePolicy.disabled)
    unstable: bool = False
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        object.__setattr__(self, "ignore", tuple(self.ignore or ()))
        object.__setattr__(self, "reporter", Reporter.coerce(self.reporter))
        object.__setattr__(self, "update", UpdatePolicy.coerce(self.update))
        if self.error_dep_count < 0:
            raise ValueError("error_dep_count must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> "CheckerOptions":
        """Build options, letting environment variables override the registry.

        Recognized variables: DEPWATCH_REGISTRY, DEPWATCH_TIMEOUT and
        DEPWATCH_IGNORE (comma separated, merged with ``ignore``).
        """
        values = dict(overrides)

        if env_registry := os.environ.get(f"{_ENV_PREFIX}REGISTRY"):
            values["registry"] = env_registry

        if env_timeout := os.environ.get(f"{_ENV_PREFIX}TIMEOUT"):
            try:
                values["timeout"] = float(env_timeout)
            except ValueError:
                pass  # Keep configured timeout if env var is invalid

        if env_ignore := os.environ.get(f"{_ENV_PREFIX}IGNORE"):
            names = [name.strip() for name in env_ignore.split(",") if name.strip()]
            values["ignore"] = tuple(values.get("ignore", ())) + tuple(names)

        return cls(**values)


@dataclass(frozen=True)
class QueryOptions:
    """Settings for one registry query.

    ``dev`` and ``optional`` select the dependency group being queried:
    neither means runtime ``dependencies``.
    """

    error_404: bool = False
    error_dep_type: bool = False
    error_scm: bool = False
    ignore: tuple[str, ...] = ()
    loose: bool = True
    stable: bool = True
    registry: str | None = None
    dev: bool = False
    optional: bool = False

    @classmethod
    def from_checker(cls, options: CheckerOptions) -> "QueryOptions":
        return cls(
            error_404=options.error_404,
            error_dep_type=options.error_dep_type,
            error_scm=options.error_scm,
            ignore=options.ignore,
            loose=True,
            stable=not options.unstable,
            registry=options.registry,
        )

    def for_group(self, group: str) -> "QueryOptions":
        """Return a copy selecting the given dependency group."""
        if group not in DEPENDENCY_GROUPS:
            raise ValueError(f"Unknown dependency group: {group}")
        return replace(
            self,
            dev=group == "devDependencies",
            optional=group == "optionalDependencies",
        )

    @property
    def group(self) -> str:
        if self.dev:
            return "devDependencies"
        if self.optional:
            return "optionalDependencies"
        return "dependencies"
