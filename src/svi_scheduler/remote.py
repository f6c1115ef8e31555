"""remote.py — thin wrappers around ``rclone`` for the lab's cloud storage.

The report decks and the accessioning workbook live on a cloud drive that
is reached through an ``rclone`` remote (e.g. ``OneDrive:``). These helpers
are only called by the CLI; the scheduling core never touches the network.

Typical usage::

    from svi_scheduler.remote import copy_remote_file, list_remote

    lines    = list_remote("OneDrive:SVI Powerpoints", include="*.pptx")
    workbook = copy_remote_file("OneDrive:Accessioning", "3335 Accessioning.xlsx", tmpdir)
"""
from __future__ import annotations

__all__ = ["list_remote", "copy_remote_file"]

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def list_remote(remote: str, include: str = "*.pptx") -> list[str]:
    """Return the lines of ``rclone ls <remote> --include <include>``.

    A missing ``rclone`` binary or a failed listing is logged and yields an
    empty list, so an unreachable drive only means no sample is marked as
    reported.
    """
    cmd = ["rclone", "ls", remote, "--include", include]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    except (subprocess.CalledProcessError, FileNotFoundError) as exc:
        logger.warning("rclone ls %s failed: %s", remote, exc)
        return []
    return [line for line in result.stdout.splitlines() if line.strip()]


def copy_remote_file(folder: str, name: str, dest_dir: str | Path) -> Path:
    """Copy *name* from the rclone *folder* into *dest_dir* and return the local path.

    Raises
    ------
    RuntimeError
        If ``rclone`` is unavailable, exits non-zero, or the file does not
        appear in *dest_dir* afterwards.
    """
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    cmd = ["rclone", "copy", "--include", name, folder, str(dest_dir)]
    logger.info("Copying %r from %s", name, folder)
    try:
        subprocess.run(cmd, capture_output=True, text=True, check=True)
    except FileNotFoundError as exc:
        raise RuntimeError("rclone is not installed or not on PATH") from exc
    except subprocess.CalledProcessError as exc:
        raise RuntimeError(
            f"rclone copy of {name!r} from {folder!r} failed (exit {exc.returncode}): "
            f"{(exc.stderr or '').strip()}. Check rclone configuration and permissions."
        ) from exc

    local = dest_dir / name
    if not local.exists():
        raise RuntimeError(f"rclone copy reported success but {local} does not exist")
    return local
