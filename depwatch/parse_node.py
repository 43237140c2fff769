"""Node.js package.json parsing."""

import json
import logging
from typing import Any

from .errors import EmptyInput, InvalidManifest, StreamingUnsupported
from .models import Manifest, ManifestFile

logger = logging.getLogger(__name__)


def parse_package_json(content: Any, path: str = "package.json") -> Manifest:
    """Parse package.json content into Manifest.

    Args:
        content: The whole document as bytes or str
        path: Path of the manifest, used in error messages

    Returns:
        Parsed Manifest object

    Raises:
        EmptyInput: content is None or zero-length
        StreamingUnsupported: content is a stream rather than a buffer
        InvalidManifest: content is not a JSON object
    """
    if content is None:
        raise EmptyInput(path)
    if not isinstance(content, (bytes, bytearray, str)):
        raise StreamingUnsupported()
    if not content:
        raise EmptyInput(path)

    try:
        text = content.decode("utf-8") if isinstance(content, (bytes, bytearray)) else content
        data = json.loads(text)
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidManifest(path) from e

    if not isinstance(data, dict):
        raise InvalidManifest(path)

    logger.debug("Parsed manifest %s", path)
    return Manifest(path=path, data=data)


def parse_file(file: ManifestFile) -> Manifest:
    """Parse the manifest carried by a ManifestFile."""
    if file.is_null():
        raise EmptyInput(file.path)
    if file.is_stream():
        raise StreamingUnsupported()
    return parse_package_json(file.contents, file.path)
