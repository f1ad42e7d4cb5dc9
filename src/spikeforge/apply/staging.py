"""In-memory staging and all-or-nothing commit.

Apply never writes while it is still deciding what to write. Every rendered
or patched file lands in a StagingBuffer first; commit() then takes the
per-root lock, re-checks each path against the checksum seen at staging
time and writes the set, undoing its own writes if one of them fails.
"""

import logging
import os
import tempfile
import threading
import weakref
from dataclasses import dataclass, field
from pathlib import Path

from spikeforge.foundation.utils import compute_hash

logger = logging.getLogger(__name__)


class RootLock:
    """A threading.Lock that a WeakValueDictionary can hold."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def __enter__(self) -> "RootLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()


# An entry lives only while some caller references its lock
_root_locks: "weakref.WeakValueDictionary[str, RootLock]" = weakref.WeakValueDictionary()
_root_locks_guard = threading.Lock()


def root_lock(root: Path) -> RootLock:
    """Lock shared by every commit into the same resolved root."""
    key = str(root.resolve())
    with _root_locks_guard:
        lock = _root_locks.get(key)
        if lock is None:
            lock = RootLock()
            _root_locks[key] = lock
        return lock


def read_bytes(path: Path) -> bytes | None:
    """Current content of a file, or None when it does not exist."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def checksum_of(data: bytes | None) -> str | None:
    return None if data is None else compute_hash(data)


@dataclass(frozen=True, slots=True)
class StagedFile:
    """Content waiting to be written at ``path`` (relative to the buffer root).

    ``base_checksum`` is the digest of what was on disk when the path was
    first staged, or None if nothing was there.
    """

    path: str
    content: str
    checksum: str
    base_checksum: str | None

    @classmethod
    def create(cls, path: str, content: str, base_checksum: str | None) -> "StagedFile":
        return cls(path, content, compute_hash(content), base_checksum)


@dataclass(frozen=True, slots=True)
class CommitResult:
    """What a commit did.

    A commit either writes everything (``written``), writes nothing because
    the disk moved under it (``drifted``), or fails part way and rolls back
    (``error``). Paths the rollback could not put back are ``indeterminate``.
    """

    written: tuple[str, ...] = ()
    drifted: tuple[str, ...] = ()
    error: str | None = None
    indeterminate: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return not self.drifted and self.error is None


@dataclass(slots=True)
class StagingBuffer:
    """Files staged against one target root, in staging order."""

    root: Path
    _files: dict[str, StagedFile] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def stage(self, path: str, content: str, base_checksum: str | None) -> StagedFile:
        """Stage ``content`` for ``path``.

        Staging the same path again swaps the content; the base checksum
        from the first call is kept since that is the disk state commit
        must still find.
        """
        with self._lock:
            previous = self._files.get(path)
            base = previous.base_checksum if previous is not None else base_checksum
            staged = self._files[path] = StagedFile.create(path, content, base)
        logger.debug("Staged %s (%d chars)", path, len(content))
        return staged

    def unstage(self, path: str) -> StagedFile | None:
        with self._lock:
            return self._files.pop(path, None)

    def get(self, path: str) -> StagedFile | None:
        with self._lock:
            return self._files.get(path)

    def snapshot(self) -> dict[str, StagedFile]:
        with self._lock:
            return dict(self._files)

    def clear(self) -> int:
        """Drop everything staged; returns how many files were dropped."""
        with self._lock:
            dropped = len(self._files)
            self._files.clear()
        return dropped

    @property
    def file_count(self) -> int:
        with self._lock:
            return len(self._files)

    def commit(self) -> CommitResult:
        """Write every staged file or none of them.

        Runs under ``root_lock(root)``. Drift on any path aborts before the
        first write. Writes go through a temp file and ``os.replace``; on an
        OSError the files written so far get their old bytes back (or are
        deleted), and directories this commit created are removed again.
        """
        files = self.snapshot()
        if not files:
            return CommitResult()

        with root_lock(self.root):
            drifted = tuple(
                path
                for path, staged in files.items()
                if checksum_of(read_bytes(self.root / path)) != staged.base_checksum
            )
            if drifted:
                logger.warning("Commit into %s aborted, %d path(s) drifted", self.root, len(drifted))
                return CommitResult(drifted=drifted)

            undo = _UndoLog(self.root)
            current = ""
            try:
                for current, staged in files.items():
                    undo.write(current, staged.content.encode("utf-8"))
            except OSError as e:
                logger.error("Writing %s failed (%s); rolling back %d file(s)", current, e, len(undo.written))
                return CommitResult(error=str(e), indeterminate=undo.rollback())

        self.clear()
        logger.info("Committed %d file(s) into %s", len(undo.written), self.root)
        return CommitResult(written=tuple(undo.written))


class _UndoLog:
    """Writes files under a root while remembering how to take them back."""

    def __init__(self, root: Path):
        self.root = root
        self.written: list[str] = []
        self._previous: dict[str, bytes | None] = {}
        self._new_dirs: list[Path] = []

    def write(self, path: str, data: bytes) -> None:
        target = self.root / path
        self._previous[path] = read_bytes(target)
        self._new_dirs.extend(_make_parents(target.parent))
        _atomic_write(target, data)
        self.written.append(path)

    def rollback(self) -> tuple[str, ...]:
        """Undo in reverse order; returns what could not be undone."""
        stuck: list[str] = []
        for path in reversed(self.written):
            previous = self._previous[path]
            try:
                if previous is None:
                    (self.root / path).unlink(missing_ok=True)
                else:
                    _atomic_write(self.root / path, previous)
            except OSError as e:
                logger.error("Could not restore %s: %s", path, e)
                stuck.append(path)

        for directory in reversed(self._new_dirs):
            try:
                directory.rmdir()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("Could not remove %s: %s", directory, e)
                stuck.append(f"{directory.relative_to(self.root).as_posix()}/")
        return tuple(stuck)


def _make_parents(directory: Path) -> list[Path]:
    """Create ``directory`` and missing ancestors; returns those created, outermost first."""
    missing: list[Path] = []
    while not directory.exists() and directory.parent != directory:
        missing.append(directory)
        directory = directory.parent
    missing.reverse()
    for d in missing:
        d.mkdir(exist_ok=True)
    return missing


def _atomic_write(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
