"""Packaging of linked runtime images.

The linked image directory is packed into a single archive whose format
follows the target release's file name: '.zip' for zip archives,
gzip-compressed tar for everything else.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
from pathlib import Path

from jlink_online.errors import ArchiveError

logger = logging.getLogger(__name__)

# Legal notices are symlink farms on some platforms
LEGAL_DIR = "legal"


def remove_legal_dir(image_dir: Path) -> None:
    """Remove the legal notices directory from a linked image."""
    legal = image_dir / LEGAL_DIR
    if legal.exists() or legal.is_symlink():
        logger.debug("Removing %s", legal)
        shutil.rmtree(legal, ignore_errors=True)


def _write_zip(image_dir: Path, archive_path: Path) -> None:
    with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(image_dir.rglob("*")):
            arcname = Path(image_dir.name) / path.relative_to(image_dir)
            # ZipInfo.from_file keeps the permission bits of each entry
            zf.write(path, arcname.as_posix())


def _write_tar_gz(image_dir: Path, archive_path: Path) -> None:
    with tarfile.open(archive_path, "w:gz") as tar:
        tar.add(image_dir, arcname=image_dir.name)


def archive_image(image_dir: Path, archive_path: Path) -> bytes:
    """Pack a linked image and return the archive contents.

    Args:
        image_dir: Directory produced by jlink.
        archive_path: Where to write the archive; its name picks the format.

    Returns:
        The archive bytes.

    Raises:
        ArchiveError: If packaging fails.
    """
    remove_legal_dir(image_dir)

    logger.info("Archiving %s to %s", image_dir, archive_path.name)
    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        if archive_path.name.lower().endswith(".zip"):
            _write_zip(image_dir, archive_path)
        else:
            _write_tar_gz(image_dir, archive_path)
        content = archive_path.read_bytes()
    except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"Failed to archive {image_dir}: {e}") from e

    logger.info("Archived %s (%d bytes)", archive_path.name, len(content))
    return content


__all__ = ["LEGAL_DIR", "archive_image", "remove_legal_dir"]
