"""Output directory writes: one atomic file per artifact."""

import logging
import os
import shutil
import tempfile

logger = logging.getLogger(__name__)


def make_write_file(output_dir, dry_run=False):
    """Create a write_file callable rooted at output_dir.

    Each file is written to a temp file in its target directory and renamed
    into place, so a failed write never leaves a truncated artifact. OSError
    propagates unchanged.
    """

    async def write_file(path, content):
        full_path = os.path.join(output_dir, path)
        if dry_run:
            logger.info(f"[dry-run] write {full_path}")
            return
        directory = os.path.dirname(full_path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            os.replace(tmp_path, full_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Wrote {full_path}")

    return write_file


def remove_output(output_dir, dry_run=False):
    """Delete the output directory. Returns False when there was nothing to delete."""
    if not os.path.isdir(output_dir):
        return False
    if dry_run:
        logger.info(f"[dry-run] remove {output_dir}")
        return True
    shutil.rmtree(output_dir)
    return True
