"""gobreakcheck driver: find affected packages and diff each of them."""
import posixpath
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from comparer import Comparer, Report
from config import CheckConfig
from declarations import Declaration, FuncDecl, TypeDecl
from errors import PackageNotFoundError
from goparser import GoParser
from logs import get_logger
from printer import render
from snapshots import (
    ChangeKind,
    FileChange,
    GitClient,
    GitRevision,
    WorkingTree,
    is_source_file,
)
from summary import DeclarationSummary, is_public_func

logger = get_logger("analyzer")


class Snapshot(Protocol):
    label: Optional[str]

    def list_sources(self, directory: str) -> List[str]: ...

    def read(self, path: str) -> bytes: ...


@dataclass
class PackageResult:
    package: str
    report: Report
    removed: bool = False

    @property
    def breaking(self) -> bool:
        return len(self.report) > 0


@dataclass
class CheckResult:
    packages: List[PackageResult] = field(default_factory=list)

    @property
    def findings(self) -> int:
        return sum(len(p.report) for p in self.packages)

    @property
    def breaking(self) -> bool:
        return any(p.breaking for p in self.packages)


def strip_private_segments(directory: str, segments: Iterable[str]) -> str:
    """Cut ``directory`` at the first private segment (``a/internal/b`` -> ``a``)."""
    parts = [] if directory in ("", ".") else directory.split("/")
    for i, part in enumerate(parts):
        if part in segments:
            return "/".join(parts[:i])
    return "/".join(parts) or "."


def affected_packages(changes: Iterable[FileChange], config: CheckConfig) -> List[str]:
    """Package directories whose prior sources changed, sorted."""
    packages = set()
    for change in changes:
        if change.kind is ChangeKind.ADDED:
            # nothing existed before, so nothing can break
            continue
        if not is_source_file(change.old_path):
            continue
        parent = posixpath.dirname(change.old_path)
        stripped = strip_private_segments(parent, config.private_segments)
        if not stripped:
            # a top-level internal or vendor tree
            continue
        packages.add(stripped)
    return sorted(packages)


def _relative(path: str, directory: str) -> str:
    if directory in ("", "."):
        return path
    return posixpath.relpath(path, directory)


def read_declarations(
    snapshot: Snapshot, directory: str, parser: GoParser
) -> List[Declaration]:
    decls: List[Declaration] = []
    for path in snapshot.list_sources(directory):
        decls.extend(parser.parse(snapshot.read(path), _relative(path, directory)))
    return decls


def build_summary(
    snapshot: Snapshot, directory: str, parser: GoParser, config: CheckConfig
) -> DeclarationSummary:
    return DeclarationSummary.build(
        directory, read_declarations(snapshot, directory, parser), config
    )


def compare_package(
    directory: str, head: Snapshot, base: Snapshot, config: CheckConfig
) -> PackageResult:
    """Diff one package: summarize ``head``, then walk ``base`` against it."""
    logger.debug("comparing package %s", directory)
    parser = GoParser()
    try:
        summary = build_summary(head, directory, parser, config)
    except PackageNotFoundError:
        logger.info("package %s was removed", directory)
        return PackageResult(directory, Report(directory), removed=True)

    comparer = Comparer(summary, Report(directory), config, base_label=base.label)
    try:
        prior = read_declarations(base, directory, parser)
    except PackageNotFoundError:
        logger.debug("package %s is new, nothing to compare", directory)
        return PackageResult(directory, comparer.report)
    for decl in prior:
        comparer.visit(decl)
    return PackageResult(directory, comparer.report)


def run_packages(
    packages: List[str], head: Snapshot, base: Snapshot, config: CheckConfig
) -> CheckResult:
    """Compare every package; results keep the order of ``packages``."""
    if config.jobs > 1 and len(packages) > 1:
        with ThreadPoolExecutor(max_workers=config.jobs) as pool:
            results = list(
                pool.map(lambda d: compare_package(d, head, base, config), packages)
            )
    else:
        results = [compare_package(d, head, base, config) for d in packages]
    return CheckResult(results)


def check_repository(
    config: CheckConfig, client: Optional[GitClient] = None
) -> CheckResult:
    """Compare the working tree against ``config.base_ref`` for changed packages."""
    client = client or GitClient()
    packages = affected_packages(client.changed_files(config.base_ref), config)
    logger.debug("%d affected package(s)", len(packages))
    head = WorkingTree(client.cwd)
    base = GitRevision(client, config.base_ref)
    return run_packages(packages, head, base, config)


def compare_trees(old: Path, new: Path, config: CheckConfig) -> CheckResult:
    """Compare every Go package of the ``old`` tree against the ``new`` tree."""
    base = WorkingTree(old)
    head = WorkingTree(new)
    packages = [
        p for p in base.packages()
        if strip_private_segments(p, config.private_segments) == p
    ]
    return run_packages(packages, head, base, config)


def public_api(snapshot: Snapshot, directory: str, config: CheckConfig) -> List[str]:
    """Rendered exported declarations of one package."""
    lines = []
    for decl in read_declarations(snapshot, directory, GoParser()):
        if isinstance(decl, FuncDecl):
            public = is_public_func(decl, config)
        elif isinstance(decl, TypeDecl):
            public = config.is_public(decl.name)
        else:
            public = any(config.is_public(n) for n in decl.names)
        if public:
            lines.append(render(decl, config.is_public))
    return lines
