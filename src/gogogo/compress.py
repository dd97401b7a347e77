"""Artifact compression.

gzip a built binary next to itself and remove the original.
"""

from __future__ import annotations

import gzip
import shutil
from pathlib import Path

# Suffix appended to compressed artifacts
COMPRESSED_SUFFIX = ".gz"


def compressed_path(path: Path) -> Path:
    """Path of the compressed sibling of an artifact."""
    return path.with_name(path.name + COMPRESSED_SUFFIX)


def compress_artifact(path: Path) -> Path:
    """Compress an artifact with gzip and delete the original.

    The original is only removed once the compressed file has been fully
    written; a partial .gz is removed on failure.

    Args:
        path: Artifact to compress.

    Returns:
        Path of the compressed file.

    Raises:
        OSError: If reading, writing or removing fails.
    """
    target = compressed_path(path)
    try:
        with path.open("rb") as src, gzip.open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
    except OSError:
        target.unlink(missing_ok=True)
        raise
    path.unlink()
    return target
