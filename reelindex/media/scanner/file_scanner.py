"""
File system media scanner.

Walks local directories and classifies what it finds as folders, video or
audio. Blocking; callers run it in a worker thread.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, List, Optional

from reelindex.config import DEFAULT_AUDIO_EXTENSIONS, DEFAULT_VIDEO_EXTENSIONS
from reelindex.database.models import EntryKind
from reelindex.exceptions import ScanError
from reelindex.media.scanner.base import ScannedEntry, WalkResult

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[str, OSError], None]


def _normalize_extensions(extensions: Iterable[str]) -> set[str]:
    return {"." + ext.lower().lstrip(".") for ext in extensions}


def _list_dir(path: str) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda entry: entry.name)


class FileScanner:
    """
    Scans local file system for media files.

    Traversal is iterative and depth-first in pre-order: a folder is
    reported before its contents, siblings in name order. Directory
    symlinks are not followed.
    """

    def __init__(
        self,
        video_extensions: Optional[Iterable[str]] = None,
        audio_extensions: Optional[Iterable[str]] = None,
    ):
        self.video_extensions = _normalize_extensions(
            video_extensions if video_extensions is not None else DEFAULT_VIDEO_EXTENSIONS
        )
        self.audio_extensions = _normalize_extensions(
            audio_extensions if audio_extensions is not None else DEFAULT_AUDIO_EXTENSIONS
        )

    def classify(self, name: str) -> Optional[EntryKind]:
        """Kind of a file by extension, or None when it is not media."""
        ext = os.path.splitext(name)[1].lower()
        if ext in self.video_extensions:
            return EntryKind.VIDEO
        if ext in self.audio_extensions:
            return EntryKind.AUDIO
        return None

    @staticmethod
    def _check_root(root: str) -> str:
        root_path = os.path.abspath(root)
        if not os.path.isdir(root_path):
            raise ScanError(f"Not a directory: {root_path}", path=root_path)
        return root_path

    def _iter_tree(
        self, root: str, on_error: ErrorHandler
    ) -> Iterator[tuple[os.DirEntry, bool]]:
        """
        Yield (entry, is_dir) below root in traversal order.

        Raises:
            ScanError: root is missing or unreadable
        """
        root_path = self._check_root(root)
        try:
            stack = [iter(_list_dir(root_path))]
        except OSError as e:
            raise ScanError(f"Cannot read {root_path}: {e}", path=root_path) from e

        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as e:
                on_error(entry.path, e)
                continue

            yield entry, is_dir

            if is_dir:
                try:
                    stack.append(iter(_list_dir(entry.path)))
                except OSError as e:
                    on_error(entry.path, e)

    def walk(self, root: str) -> WalkResult:
        """
        Collect every folder and media file below root.

        Per-entry errors are recorded in the result and the walk continues.

        Raises:
            ScanError: root is missing or unreadable
        """
        result = WalkResult()

        def on_error(path: str, error: OSError) -> None:
            result.errors.append({"path": path, "error": str(error)})

        for entry, is_dir in self._iter_tree(root, on_error):
            parent = os.path.dirname(entry.path)
            if is_dir:
                result.entries.append(
                    ScannedEntry(
                        path=entry.path,
                        name=entry.name,
                        parent_path=parent,
                        kind=EntryKind.FOLDER,
                    )
                )
                continue

            try:
                if not entry.is_file():
                    continue
                kind = self.classify(entry.name)
                if kind is None:
                    continue
                stat = entry.stat()
            except OSError as e:
                on_error(entry.path, e)
                continue

            result.entries.append(
                ScannedEntry(
                    path=entry.path,
                    name=entry.name,
                    parent_path=parent,
                    kind=kind,
                    extension=os.path.splitext(entry.name)[1].lower(),
                    size=stat.st_size,
                    modified_at=datetime.fromtimestamp(
                        stat.st_mtime, tz=timezone.utc
                    ).replace(tzinfo=None),
                )
            )

        logger.debug(
            f"Walked {root}: {result.folders} folders, {result.media_files} media files, "
            f"{len(result.errors)} errors"
        )
        return result

    def list_files(self, root: str, extensions: Iterable[str]) -> List[str]:
        """
        Paths of files below root whose extension is in extensions.

        Unreadable entries are logged and skipped.

        Raises:
            ScanError: root is missing or unreadable
        """
        wanted = _normalize_extensions(extensions)
        files: List[str] = []

        def on_error(path: str, error: OSError) -> None:
            logger.warning(f"Skipping {path}: {error}")

        for entry, is_dir in self._iter_tree(root, on_error):
            if is_dir:
                continue
            if os.path.splitext(entry.name)[1].lower() in wanted:
                files.append(entry.path)

        return files
