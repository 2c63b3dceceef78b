"""Source snapshots: a git revision or the working tree on disk."""
import posixpath
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from errors import PackageNotFoundError, RetrievalError
from logs import get_logger

logger = get_logger("snapshots")

SOURCE_SUFFIX = ".go"
TEST_SUFFIX = "_test.go"

Runner = Callable[[Sequence[str], Path], "subprocess.CompletedProcess[bytes]"]


def is_source_file(path: str) -> bool:
    return path.endswith(SOURCE_SUFFIX) and not path.endswith(TEST_SUFFIX)


class ChangeKind(Enum):
    ADDED = "A"
    COPIED = "C"
    DELETED = "D"
    MODIFIED = "M"
    RENAMED = "R"
    TYPE_CHANGED = "T"
    UNMERGED = "U"
    UNKNOWN = "X"
    BROKEN = "B"

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True)
class FileChange:
    kind: ChangeKind
    path: str
    old_path: str  # differs from path for renames and copies


def _run(args: Sequence[str], cwd: Path) -> "subprocess.CompletedProcess[bytes]":
    return subprocess.run(list(args), cwd=str(cwd), capture_output=True, check=False)


class GitClient:
    """Thin wrapper over the git CLI; every failure is a ``RetrievalError``."""

    def __init__(self, cwd: Path = Path("."), runner: Optional[Runner] = None) -> None:
        self.cwd = Path(cwd)
        self._runner = runner or _run

    def _git(self, *args: str) -> bytes:
        cmd = ["git", *args]
        logger.debug("running %s", " ".join(cmd))
        completed = self._runner(cmd, self.cwd)
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace") if completed.stderr else ""
            raise RetrievalError(f"git {args[0]} failed", stderr)
        return completed.stdout

    def changed_files(self, ref: str) -> List[FileChange]:
        """Files that differ between ``ref`` and the working tree."""
        out = self._git("diff", "--name-status", "--relative", ref).decode("utf-8")
        changes = []
        for line in out.splitlines():
            if not line:
                continue
            parts = line.split("\t")
            if len(parts) < 2 or not parts[0]:
                raise RetrievalError("git diff: unexpected line", line)
            try:
                kind = ChangeKind(parts[0][0])
            except ValueError:
                raise RetrievalError("git diff: invalid change type", line) from None
            if kind in (ChangeKind.RENAMED, ChangeKind.COPIED):
                if len(parts) != 3:
                    raise RetrievalError("git diff: unexpected line", line)
                changes.append(FileChange(kind, parts[2], parts[1]))
            else:
                changes.append(FileChange(kind, parts[1], parts[1]))
        return changes

    def list_sources(self, ref: str, directory: str) -> List[str]:
        """Non-test Go files directly inside ``directory`` at ``ref``.

        Raises ``PackageNotFoundError`` when the directory has no entries.
        """
        prefix = "" if directory in ("", ".", "./") else directory.rstrip("/") + "/"
        args = ["ls-tree", ref]
        if prefix:
            args.append(prefix)
        out = self._git(*args).decode("utf-8")
        lines = [line for line in out.splitlines() if line]
        if not lines:
            raise PackageNotFoundError(directory, ref)
        blobs = []
        for line in lines:
            meta, sep, path = line.partition("\t")
            fields = meta.split()
            if not sep or len(fields) != 3:
                raise RetrievalError("git ls-tree: unexpected line", line)
            if fields[1] == "blob" and is_source_file(path):
                blobs.append(path)
        return blobs

    def read_blob(self, ref: str, path: str) -> bytes:
        return self._git("cat-file", "blob", f"{ref}:./{path}")


class GitRevision:
    """Snapshot of the repository at one revision."""

    def __init__(self, client: GitClient, ref: str) -> None:
        self.client = client
        self.ref = ref

    @property
    def label(self) -> Optional[str]:
        return self.ref

    def list_sources(self, directory: str) -> List[str]:
        return self.client.list_sources(self.ref, directory)

    def read(self, path: str) -> bytes:
        return self.client.read_blob(self.ref, path)


class WorkingTree:
    """Snapshot backed by files on disk under ``root``."""

    label: Optional[str] = None

    def __init__(self, root: Path = Path(".")) -> None:
        self.root = Path(root)

    def list_sources(self, directory: str) -> List[str]:
        folder = self.root / directory
        if not folder.is_dir():
            raise PackageNotFoundError(directory)
        return sorted(
            posixpath.join(directory, p.name) if directory not in ("", ".") else p.name
            for p in folder.iterdir()
            if p.is_file() and is_source_file(p.name)
        )

    def read(self, path: str) -> bytes:
        try:
            return (self.root / path).read_bytes()
        except OSError as e:
            raise RetrievalError(f"cannot read {path}", str(e)) from e

    def packages(self) -> List[str]:
        """Every directory holding Go sources, as paths relative to ``root``."""
        dirs = {
            p.parent.relative_to(self.root).as_posix()
            for p in self.root.rglob(f"*{SOURCE_SUFFIX}")
            if p.is_file() and is_source_file(p.name)
        }
        return sorted(dirs)
