"""Exceptions raised by depwatch."""

PREFIX = "[depwatch]"


class DepwatchError(Exception):
    """Base class for every depwatch failure."""

    def __init__(self, message: str):
        super().__init__(f"{PREFIX} {message}")


class ManifestError(DepwatchError):
    """The manifest could not be read."""


class EmptyInput(ManifestError):
    def __init__(self, path: str):
        super().__init__(f"Empty manifest: {path}")
        self.path = path


class StreamingUnsupported(ManifestError):
    def __init__(self):
        super().__init__("Streams are not supported.")


class InvalidManifest(ManifestError):
    def __init__(self, path: str):
        super().__init__(f"Invalid manifest: {path}")
        self.path = path


class RegistryQueryFailed(DepwatchError):
    """A registry lookup failed.

    ``kind`` is one of ``not_found``, ``dep_type_mismatch``, ``scm_hosted`` or
    ``transport``.
    """

    NOT_FOUND = "not_found"
    DEP_TYPE_MISMATCH = "dep_type_mismatch"
    SCM_HOSTED = "scm_hosted"
    TRANSPORT = "transport"

    def __init__(self, kind: str, package: str | None, detail: str):
        target = f"{package}: " if package else ""
        super().__init__(f"{target}{detail}")
        self.kind = kind
        self.package = package
        self.detail = detail


class ClassificationFailed(DepwatchError):
    """Classifying a manifest's dependencies failed."""

    def __init__(self, cause: Exception, path: str | None = None):
        target = f"{path}: " if path else ""
        super().__init__(f"{target}{_strip_prefix(cause)}")
        self.cause = cause
        self.path = path


class MissingVersion(DepwatchError):
    def __init__(self, package: str, field_name: str):
        super().__init__(f"No {field_name} version known for {package}")
        self.package = package


class TooManyOutdated(DepwatchError):
    def __init__(self, count: int):
        super().__init__(f"{count} outdated dependencies")
        self.count = count


class ReporterError(DepwatchError):
    """The reporter was handed a file without classification results."""


def _strip_prefix(error: Exception) -> str:
    message = str(error)
    if message.startswith(PREFIX):
        return message[len(PREFIX):].lstrip()
    return message
