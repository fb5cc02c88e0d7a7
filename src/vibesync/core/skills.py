"""
Skill directory export and import with a ledger for symlinked skills.

Skills that are symlinks to directories outside ``~/.claude/skills`` are not
copied. Their link targets are recorded in a manifest instead, so the link can
be recreated on another machine that has the same external checkout.
"""

import os
import shutil
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import List, Union

from ..utils.fs import copy_dir_clean, read_json_safe, write_json_safe
from ..utils.logger import get_logger
from ..utils.platform import platform_detector

logger = get_logger(__name__)


@dataclass
class SymlinkEntry:
    """One externally linked skill directory."""
    name: str
    target: str


def load_manifest(manifest_path: Union[str, Path]) -> List[SymlinkEntry]:
    """Read the symlink manifest, ignoring malformed rows."""
    data = read_json_safe(manifest_path)
    if not isinstance(data, dict) or not isinstance(data.get('symlinks'), list):
        return []

    entries = []
    for row in data['symlinks']:
        if (isinstance(row, dict) and isinstance(row.get('name'), str)
                and isinstance(row.get('target'), str) and row['name']):
            entries.append(SymlinkEntry(name=row['name'], target=row['target']))
        else:
            logger.warning(f"Ignoring malformed symlink manifest entry: {row!r}")
    return entries


def export_skills(src_dir: Union[str, Path], dest_dir: Union[str, Path],
                  manifest_path: Union[str, Path]) -> List[SymlinkEntry]:
    """Copy real skill directories and record symlinked ones in the manifest.

    The manifest is recomputed from scratch on every export. Returns the
    recorded symlinks.
    """
    src_dir, dest_dir = Path(src_dir), Path(dest_dir)
    if not src_dir.exists():
        logger.warning(f"Skills directory not found: {src_dir}")
        return []

    dest_dir.mkdir(parents=True, exist_ok=True)
    symlinks: List[SymlinkEntry] = []

    for entry in sorted(src_dir.iterdir(), key=lambda p: p.name):
        if entry.is_symlink():
            # Keep the raw link text so relative links stay relative
            target = os.readlink(entry)
            symlinks.append(SymlinkEntry(name=entry.name, target=target))
            logger.info(f"Recorded external skill: {entry.name} -> {target}")
        elif entry.is_dir():
            copy_dir_clean(entry, dest_dir / entry.name)
            logger.info(f"Exported skill: {entry.name}")

    write_json_safe(manifest_path, {'symlinks': [asdict(s) for s in symlinks]})
    logger.ok('Skills exported')
    return symlinks


def _is_unsafe_name(name: str) -> bool:
    return name in ('.', '..') or '/' in name or '\\' in name


def _remove_existing(path: Path):
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def import_skills(src_dir: Union[str, Path], dest_dir: Union[str, Path],
                  manifest_path: Union[str, Path]) -> int:
    """Copy synced skills into place and recreate recorded symlinks.

    Missing link targets are skipped with a warning. Returns the number of
    links recreated.
    """
    src_dir, dest_dir = Path(src_dir), Path(dest_dir)

    if src_dir.exists():
        dest_dir.mkdir(parents=True, exist_ok=True)
        for entry in sorted(src_dir.iterdir(), key=lambda p: p.name):
            if entry.is_dir() and not entry.is_symlink():
                target_dir = dest_dir / entry.name
                if target_dir.is_symlink():
                    target_dir.unlink()
                copy_dir_clean(entry, target_dir)
                logger.info(f"Imported skill: {entry.name}")

    linked = 0
    for link in load_manifest(manifest_path):
        if _is_unsafe_name(link.name):
            logger.warning(f"Ignoring symlink with unsafe name: {link.name!r}")
            continue

        dest_dir.mkdir(parents=True, exist_ok=True)
        link_path = dest_dir / link.name
        # Relative targets resolve against the directory holding the link
        if not (dest_dir / link.target).exists():
            logger.warning(f"Symlink target not found, skipping {link.name}: {link.target}")
            continue

        if link_path.is_symlink() or link_path.exists():
            _remove_existing(link_path)
        platform_detector.create_dir_link(link.target, link_path)
        linked += 1
        logger.info(f"Linked external skill: {link.name} -> {link.target}")

    return linked
