"""Tests for git and working-tree snapshots."""
import subprocess
from pathlib import Path

import pytest

from errors import PackageNotFoundError, RetrievalError
from snapshots import ChangeKind, FileChange, GitClient, GitRevision, WorkingTree


def _fake_git(responses, calls=None):
    def runner(args, cwd):
        if calls is not None:
            calls.append((list(args), Path(cwd)))
        key = tuple(args[1:3])
        stdout, returncode, stderr = responses.get(key, (b"", 0, b""))
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)
    return runner


def test_changed_files_parses_name_status(tmp_path):
    calls = []
    out = (
        b"M\tapi/client.go\n"
        b"A\tapi/new.go\n"
        b"D\told/gone.go\n"
        b"R087\tapi/a.go\tapi/b.go\n"
        b"C100\tx.go\ty.go\n"
    )
    client = GitClient(tmp_path, runner=_fake_git({("diff", "--name-status"): (out, 0, b"")}, calls))
    changes = client.changed_files("v1.2.0")
    assert changes == [
        FileChange(ChangeKind.MODIFIED, "api/client.go", "api/client.go"),
        FileChange(ChangeKind.ADDED, "api/new.go", "api/new.go"),
        FileChange(ChangeKind.DELETED, "old/gone.go", "old/gone.go"),
        FileChange(ChangeKind.RENAMED, "api/b.go", "api/a.go"),
        FileChange(ChangeKind.COPIED, "y.go", "x.go"),
    ]
    assert calls[0] == (["git", "diff", "--name-status", "--relative", "v1.2.0"], tmp_path)


def test_changed_files_rejects_unknown_status():
    client = GitClient(runner=_fake_git({("diff", "--name-status"): (b"Z\ta.go\n", 0, b"")}))
    with pytest.raises(RetrievalError):
        client.changed_files("HEAD")


def test_git_failure_carries_diagnostic():
    client = GitClient(runner=_fake_git({
        ("diff", "--name-status"): (b"", 128, b"fatal: bad revision 'nope'\n"),
    }))
    with pytest.raises(RetrievalError) as exc:
        client.changed_files("nope")
    assert "bad revision" in str(exc.value)
    assert "bad revision" in exc.value.diagnostic


def test_list_sources_filters_go_files():
    out = (
        b"100644 blob aaa\tapi/client.go\n"
        b"100644 blob bbb\tapi/client_test.go\n"
        b"100644 blob ccc\tapi/README.md\n"
        b"040000 tree ddd\tapi/sub\n"
        b"100644 blob eee\tapi/with space.go\n"
    )
    calls = []
    client = GitClient(runner=_fake_git({("ls-tree", "HEAD"): (out, 0, b"")}, calls))
    assert client.list_sources("HEAD", "api") == ["api/client.go", "api/with space.go"]
    assert calls[0][0] == ["git", "ls-tree", "HEAD", "api/"]


def test_list_sources_of_missing_directory():
    client = GitClient(runner=_fake_git({("ls-tree", "HEAD"): (b"", 0, b"")}))
    with pytest.raises(PackageNotFoundError):
        client.list_sources("HEAD", "gone")


def test_git_revision_reads_blobs():
    calls = []
    client = GitClient(runner=_fake_git({("cat-file", "blob"): (b"package api\n", 0, b"")}, calls))
    rev = GitRevision(client, "v1")
    assert rev.label == "v1"
    assert rev.read("api/a.go") == b"package api\n"
    assert calls[0][0] == ["git", "cat-file", "blob", "v1:./api/a.go"]


def test_working_tree(tmp_path):
    pkg = tmp_path / "api"
    pkg.mkdir()
    (pkg / "b.go").write_text("package api\n")
    (pkg / "a.go").write_text("package api\n")
    (pkg / "a_test.go").write_text("package api\n")
    (tmp_path / "main.go").write_text("package main\n")
    tree = WorkingTree(tmp_path)
    assert tree.label is None
    assert tree.list_sources("api") == ["api/a.go", "api/b.go"]
    assert tree.list_sources(".") == ["main.go"]
    assert tree.read("api/a.go") == b"package api\n"
    assert tree.packages() == [".", "api"]
    with pytest.raises(PackageNotFoundError):
        tree.list_sources("gone")
    with pytest.raises(RetrievalError):
        tree.read("api/missing.go")


def test_change_kind_labels():
    assert ChangeKind.TYPE_CHANGED.label == "type-changed"
    assert ChangeKind("U") is ChangeKind.UNMERGED
