"""Tests for the package-level driver."""
import subprocess
import textwrap
from pathlib import Path

import pytest

from analyzer import (
    affected_packages,
    check_repository,
    compare_package,
    compare_trees,
    public_api,
    strip_private_segments,
)
from config import CheckConfig
from errors import GoParseError
from snapshots import ChangeKind, FileChange, GitClient, WorkingTree


def _write(root, path, code):
    target = Path(root) / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(textwrap.dedent(code).lstrip("\n"))


def test_strip_private_segments():
    segments = ("internal", "vendor")
    assert strip_private_segments("api/v2", segments) == "api/v2"
    assert strip_private_segments("api/internal/db", segments) == "api"
    assert strip_private_segments("internal/db", segments) == ""
    assert strip_private_segments("vendor/x/y", segments) == ""
    assert strip_private_segments("", segments) == "."


def test_affected_packages():
    changes = [
        FileChange(ChangeKind.MODIFIED, "api/client.go", "api/client.go"),
        FileChange(ChangeKind.MODIFIED, "api/server.go", "api/server.go"),
        FileChange(ChangeKind.ADDED, "fresh/new.go", "fresh/new.go"),
        FileChange(ChangeKind.MODIFIED, "api/client_test.go", "api/client_test.go"),
        FileChange(ChangeKind.MODIFIED, "docs/README.md", "docs/README.md"),
        FileChange(ChangeKind.RENAMED, "store/b.go", "db/a.go"),
        FileChange(ChangeKind.DELETED, "internal/x/x.go", "internal/x/x.go"),
        FileChange(ChangeKind.MODIFIED, "cmd/internal/flags/f.go", "cmd/internal/flags/f.go"),
        FileChange(ChangeKind.MODIFIED, "main.go", "main.go"),
    ]
    assert affected_packages(changes, CheckConfig()) == [".", "api", "cmd", "db"]


def test_compare_trees_reports_breaking_changes(tmp_path):
    old, new = tmp_path / "old", tmp_path / "new"
    _write(old, "api/api.go", """
        package api

        type User struct {
            ID   int
            Name string
        }

        func Get(id int) (*User, error) { return nil, nil }

        func Delete(id int) error { return nil }

        func helper() {}
    """)
    _write(new, "api/api.go", """
        package api

        type User struct {
            ID    string
            Email string
        }

        func Get(id int, opts ...Option) (*User, error) { return nil, nil }

        func List() []*User { return nil }

        func helper(x int) {}
    """)
    result = compare_trees(old, new, CheckConfig())
    assert [p.package for p in result.packages] == ["api"]
    report = result.packages[0].report
    assert [(f.kind, f.symbol) for f in report] == [
        ("struct_field_type_changed", "User.ID"),
        ("struct_field_removed", "User.Name"),
        ("function_removed", "Delete"),
    ]
    assert report.findings[2].sites[0].location == "api.go:10"
    assert result.breaking
    assert result.findings == 3


def test_compare_trees_clean_run(tmp_path):
    code = """
        package lib

        func Hello(name string) string { return name }
    """
    _write(tmp_path / "old", "lib.go", code)
    _write(tmp_path / "new", "lib.go", code)
    result = compare_trees(tmp_path / "old", tmp_path / "new", CheckConfig())
    assert [p.package for p in result.packages] == ["."]
    assert not result.breaking


def test_removed_package_is_informational(tmp_path):
    _write(tmp_path / "old", "gone/gone.go", "package gone\n\nfunc F() {}\n")
    (tmp_path / "new").mkdir()
    result = compare_trees(tmp_path / "old", tmp_path / "new", CheckConfig())
    assert result.packages[0].removed
    assert len(result.packages[0].report) == 0
    assert not result.breaking


def test_private_trees_are_skipped(tmp_path):
    _write(tmp_path / "old", "internal/db/db.go", "package db\n\nfunc Open() {}\n")
    _write(tmp_path / "new", "internal/db/db.go", "package db\n")
    result = compare_trees(tmp_path / "old", tmp_path / "new", CheckConfig())
    assert result.packages == []


def test_parallel_results_keep_package_order(tmp_path):
    for name in ("a", "b", "c", "d"):
        _write(tmp_path / "old", f"{name}/x.go", f"package {name}\n\nfunc F() {{}}\n")
        _write(tmp_path / "new", f"{name}/x.go", f"package {name}\n")
    result = compare_trees(tmp_path / "old", tmp_path / "new", CheckConfig(jobs=3))
    assert [p.package for p in result.packages] == ["a", "b", "c", "d"]
    assert result.findings == 4


def test_parse_errors_abort(tmp_path):
    _write(tmp_path / "old", "a.go", "package a\n\nfunc F() {}\n")
    _write(tmp_path / "new", "a.go", "package a\n\nfunc F( {\n")
    with pytest.raises(GoParseError):
        compare_package(".", WorkingTree(tmp_path / "new"), WorkingTree(tmp_path / "old"), CheckConfig())


def test_check_repository_against_git_revision(tmp_path):
    _write(tmp_path, "api/api.go", """
        package api

        func Open(path string, mode int) error { return nil }
    """)
    base_source = b"package api\n\nfunc Open(path string) error { return nil }\n"

    def runner(args, cwd):
        if args[1] == "diff":
            out = b"M\tapi/api.go\n"
        elif args[1] == "ls-tree":
            out = b"100644 blob abc\tapi/api.go\n"
        elif args[1] == "cat-file":
            assert args[3] == "v1.0.0:./api/api.go"
            out = base_source
        else:
            raise AssertionError(args)
        return subprocess.CompletedProcess(args, 0, out, b"")

    config = CheckConfig(base_ref="v1.0.0")
    result = check_repository(config, GitClient(tmp_path, runner=runner))
    report = result.packages[0].report
    assert [f.kind for f in report] == ["argument_count_changed"]
    assert [s.location for s in report.findings[0].sites] == ["api.go:3@v1.0.0", "api.go:3"]


def test_public_api_lists_exported_surface(tmp_path):
    _write(tmp_path, "x.go", """
        package x

        const Max, min = 10, 1

        type Point struct {
            X, Y int
        }

        type point struct{}

        func (p Point) Len() int { return 0 }

        func (p point) Len() int { return 0 }

        func New() Point { return Point{} }
    """)
    lines = public_api(WorkingTree(tmp_path), ".", CheckConfig())
    assert lines == [
        "const Max",
        "type Point struct{\n\tX, Y int\n}",
        "func (Point) Len() (int)",
        "func New() (Point)",
    ]
