"""
Filesystem helpers shared by export, import, backup and restore.
"""

import json
import os
import shutil
from pathlib import Path
from typing import Any, Optional, Union

# Files the OS drops into directories that must never be synced
OS_ARTIFACTS = ('.DS_Store', 'Thumbs.db', 'desktop.ini')


def remove_os_artifacts(directory: Union[str, Path]) -> int:
    """Recursively delete OS metadata files below ``directory``.

    Returns the number of files removed.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0

    removed = 0
    for entry in directory.iterdir():
        if entry.name in OS_ARTIFACTS and not entry.is_dir():
            entry.unlink()
            removed += 1
        elif entry.is_dir() and not entry.is_symlink():
            removed += remove_os_artifacts(entry)
    return removed


def _remove_entry(path: Path):
    """Delete whatever sits at ``path`` without following links."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def merge_tree(src: Union[str, Path], dest: Union[str, Path]):
    """Merge-copy ``src`` into ``dest``, overwriting entries of the same name.

    Symlinks are recreated as links with their raw target, replacing whatever
    already sits at that name. Files replace links and directories of the same
    name. Entries present only in ``dest`` are kept.
    """
    src, dest = Path(src), Path(dest)
    if (dest.is_symlink() or dest.exists()) and not dest.is_dir():
        _remove_entry(dest)
    dest.mkdir(parents=True, exist_ok=True)

    for entry in src.iterdir():
        target = dest / entry.name
        if entry.is_symlink():
            if target.is_symlink() or target.exists():
                _remove_entry(target)
            os.symlink(os.readlink(entry), target)
        elif entry.is_dir():
            merge_tree(entry, target)
        else:
            if target.is_symlink() or target.is_dir():
                _remove_entry(target)
            shutil.copy2(entry, target)


def copy_dir_clean(src: Union[str, Path], dest: Union[str, Path]):
    """Merge-copy a directory tree with overwrite, then strip OS artifacts."""
    merge_tree(src, dest)
    remove_os_artifacts(dest)


def copy_path(src: Union[str, Path], dest: Union[str, Path]):
    """Copy a file or a directory tree to ``dest``, overwriting what is there.

    Directories are merged: entries present only in ``dest`` are kept. A file
    is copied by content, through a link at ``dest`` if there is one.
    """
    src, dest = Path(src), Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    if src.is_dir():
        merge_tree(src, dest)
    else:
        if dest.is_dir():
            _remove_entry(dest)
        shutil.copy2(src, dest)


def read_json_safe(file_path: Union[str, Path]) -> Optional[Any]:
    """Parse a JSON file, returning None when it is missing or malformed."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError):
        return None


def write_json_safe(file_path: Union[str, Path], data: Any):
    """Write ``data`` as indented JSON, creating parent directories."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write('\n')
