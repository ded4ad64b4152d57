# fileexp/services/file_browser.py
"""
File system helpers used by the browsing UI and the bulk generator.

- list_directory(): one level of a directory, as shown in the browser
- walk_files(): every regular file below a root (directories are not entries)
- split_base_name(): "写真.tar.gz" -> ("写真.tar", ".gz")
- open_file(): launch an external program on a file, detached from us
"""

import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

from fileexp.models.types import DirectoryEntry, DirectoryListing, OpenFileResult

logger = logging.getLogger(__name__)


def split_base_name(file_name: str) -> tuple[str, str]:
    """Split a file name into (base name, extension).

    Only the last extension segment is removed. Dot files such as ".env"
    have no extension.
    """
    base, extension = os.path.splitext(os.path.basename(file_name))
    return base, extension


def list_directory(directory: Union[str, Path]) -> DirectoryListing:
    """List one directory level.

    Raises:
        OSError: if the directory cannot be read
    """
    resolved = Path(directory).expanduser().resolve()
    entries = []
    with os.scandir(resolved) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir()
            except OSError:
                is_dir = False
            entries.append(DirectoryEntry(
                name=entry.name,
                is_directory=is_dir,
                full_path=str(resolved / entry.name),
            ))
    return DirectoryListing(directory=str(resolved), entries=entries)


def walk_files(root: Union[str, Path]) -> list[Path]:
    """Recursively collect regular files below root.

    Symbolic links to directories are not followed. Unreadable
    subdirectories are logged and skipped.
    """
    results: list[Path] = []
    root_path = Path(root)

    def _on_error(error: OSError) -> None:
        logger.warning("Cannot read directory %s: %s", error.filename, error)

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_file():
                results.append(path)
    return results


def parse_program_args(args: Union[str, Sequence[str], None]) -> list[str]:
    """Accept args as a list or a shell-quoted string."""
    if args is None:
        return []
    if isinstance(args, str):
        try:
            return shlex.split(args, posix=sys.platform != "win32")
        except ValueError as e:
            logger.warning("Could not parse program arguments %r: %s", args, e)
            return args.split()
    return [a for a in args if isinstance(a, str)]


def open_file(
    file_path: Union[str, Path],
    program: Optional[str],
    args: Union[str, Sequence[str], None] = None,
) -> OpenFileResult:
    """Open file_path with program, passing args before the path.

    The child runs detached with its standard streams discarded; we do not wait
    for it. Spawn failures are reported in the result, never raised.
    """
    if not program or not program.strip():
        return OpenFileResult(ok=False, message="Program path is required.")

    command = [program.strip(), *parse_program_args(args), str(file_path)]
    popen_kwargs: dict = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if sys.platform == "win32":
        popen_kwargs["creationflags"] = (
            getattr(subprocess, "DETACHED_PROCESS", 0)
            | getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
        )
    else:
        popen_kwargs["start_new_session"] = True

    try:
        subprocess.Popen(command, **popen_kwargs)
    except OSError as e:
        logger.warning("Failed to open %s with %s: %s", file_path, program, e)
        return OpenFileResult(ok=False, message=str(e))

    logger.debug("Opened %s with %s", file_path, command[0])
    return OpenFileResult(ok=True)
