"""Structural comparison of a prior snapshot against a built summary.

The comparer walks the *prior* snapshot's declarations and looks each one up
in the summary of the *current* snapshot. Declarations that only exist in the
current snapshot are never visited, so additions can not produce findings.
"""
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from config import CheckConfig
from declarations import Declaration, FuncDecl, TypeDecl, ValueDecl
from printer import render_func, render_type, render_value
from summary import DeclarationSummary, is_public_func
from typeexpr import Pointer, Struct, Variadic, TypeExpr, kind_name, normalize, normalize_optional

TYPE_REMOVED = "type_removed"
TYPE_KIND_CHANGED = "type_kind_changed"
TYPE_CHANGED = "type_changed"
FIELD_REMOVED = "struct_field_removed"
FIELD_TYPE_CHANGED = "struct_field_type_changed"
VALUE_REMOVED = "value_removed"
VALUE_TYPE_CHANGED = "value_type_changed"
FUNC_REMOVED = "function_removed"
ARG_COUNT_CHANGED = "argument_count_changed"
ARG_TYPE_CHANGED = "argument_type_changed"
RESULTS_ADDED = "results_added"
RESULTS_REMOVED = "results_removed"
RESULT_COUNT_CHANGED = "result_count_changed"
RESULT_TYPE_CHANGED = "result_type_changed"
RECEIVER_CHANGED = "receiver_changed"

BASE = "base"
HEAD = "head"


@dataclass(frozen=True)
class Site:
    """Where a declaration lives in one snapshot, plus its rendering."""

    path: str
    line: int
    snapshot: str
    signature: str
    ref: Optional[str] = None

    @property
    def location(self) -> str:
        if self.ref:
            return f"{self.path}:{self.line}@{self.ref}"
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class Finding:
    kind: str
    symbol: str
    reason: str
    sites: Tuple[Site, ...]


@dataclass
class Report:
    """Findings for one package, in the order they were found."""

    package: str
    findings: List[Finding] = field(default_factory=list)

    def add(self, finding: Finding) -> None:
        self.findings.append(finding)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.findings)

    def __len__(self) -> int:
        return len(self.findings)


class Comparer:
    """Checks prior declarations against a current ``DeclarationSummary``.

    One instance per package. ``visit`` every declaration of the prior
    snapshot; incompatibilities accumulate in ``report``.
    """

    def __init__(
        self,
        summary: DeclarationSummary,
        report: Optional[Report] = None,
        config: Optional[CheckConfig] = None,
        base_label: Optional[str] = None,
    ) -> None:
        self.summary = summary
        self.report = report if report is not None else Report(summary.package)
        self.config = config or summary.config
        self.base_label = base_label

    def visit(self, decl: Declaration) -> None:
        if isinstance(decl, FuncDecl):
            self._compare_func(decl)
        elif isinstance(decl, TypeDecl):
            self._compare_type(decl)
        elif isinstance(decl, ValueDecl):
            self._compare_value(decl)
        else:
            raise TypeError(f"not a declaration: {decl!r}")

    # -- helpers ------------------------------------------------------------

    def _norm(self, expr: TypeExpr) -> str:
        return normalize(expr, self.config.is_public)

    def _base(self, decl: Declaration, signature: str) -> Site:
        return Site(decl.position.path, decl.position.line, BASE, signature, self.base_label)

    def _head(self, decl: Declaration, signature: str) -> Site:
        return Site(decl.position.path, decl.position.line, HEAD, signature)

    def _add(self, kind: str, symbol: str, reason: str, *sites: Site) -> None:
        self.report.add(Finding(kind, symbol, reason, tuple(sites)))

    # -- types --------------------------------------------------------------

    def _compare_type(self, base: TypeDecl) -> None:
        if not self.config.is_public(base.name):
            return
        head = self.summary.lookup_type(base.name)
        is_public = self.config.is_public
        if head is None:
            self._add(
                TYPE_REMOVED, base.name, "Type removed",
                self._base(base, f"type {base.name}"),
            )
            return
        if isinstance(base.type, Struct):
            if not isinstance(head.type, Struct):
                self._add(
                    TYPE_KIND_CHANGED, base.name,
                    f"Type kind changed from struct to {kind_name(head.type)}",
                    self._base(base, f"type {base.name}"),
                    self._head(head, render_type(head, is_public)),
                )
                return
            self._compare_structs(base, head)
            return
        a, b = self._norm(base.type), self._norm(head.type)
        if a != b:
            self._add(
                TYPE_CHANGED, base.name, f"Type changed from {a!r} to {b!r}",
                self._base(base, render_type(base, is_public)),
                self._head(head, render_type(head, is_public)),
            )

    def _compare_structs(self, base: TypeDecl, head: TypeDecl) -> None:
        """Every exported field of the prior struct must survive unchanged.

        Fields that only the current struct has are compatible.
        """
        current = {}
        for f in head.type.fields:
            for name in f.names:
                current[name] = f
        label = f"struct {base.name}"
        for f in base.type.fields:
            for name in f.names:
                if not self.config.is_public(name):
                    continue
                symbol = f"{base.name}.{name}"
                match = current.get(name)
                if match is None:
                    self._add(
                        FIELD_REMOVED, symbol, f"Struct field {name!r} removed",
                        self._base(base, label), self._head(head, label),
                    )
                    continue
                a, b = self._norm(f.type), self._norm(match.type)
                if a != b:
                    self._add(
                        FIELD_TYPE_CHANGED, symbol,
                        f"Struct field {name!r} type changed from {a!r} to {b!r}",
                        self._base(base, label), self._head(head, label),
                    )

    # -- values -------------------------------------------------------------

    def _compare_value(self, base: ValueDecl) -> None:
        is_public = self.config.is_public
        for name in base.names:
            if not is_public(name):
                continue
            head = self.summary.lookup_value(name)
            if head is None:
                self._add(
                    VALUE_REMOVED, name, "Value removed",
                    self._base(base, render_value(base, is_public)),
                )
                continue
            # inferred types on both sides compare equal; value changes are
            # not examined
            a = normalize_optional(base.type, is_public)
            b = normalize_optional(head.type, is_public)
            if a != b:
                self._add(
                    VALUE_TYPE_CHANGED, name, f"Value type changed from {a!r} to {b!r}",
                    self._base(base, render_value(base, is_public)),
                    self._head(head, render_value(head, is_public)),
                )

    # -- functions ----------------------------------------------------------

    def _compare_func(self, base: FuncDecl) -> None:
        if not is_public_func(base, self.config):
            return
        head = self.summary.lookup_func(base.key)
        if head is None:
            self._add(
                FUNC_REMOVED, str(base.key), "Function removed",
                self._base(base, render_func(base, self.config.is_public)),
            )
            return
        violation = self._receiver_violation(base, head) or self._signature_violation(base, head)
        if violation is not None:
            kind, reason = violation
            is_public = self.config.is_public
            self._add(
                kind, str(base.key), reason,
                self._base(base, render_func(base, is_public)),
                self._head(head, render_func(head, is_public)),
            )

    def _receiver_violation(self, base: FuncDecl, head: FuncDecl) -> Optional[Tuple[str, str]]:
        # a value receiver method is in the method set of both T and *T;
        # moving it to *T drops it from T
        if base.receiver is None or head.receiver is None:
            return None
        if isinstance(head.receiver, Pointer) and not isinstance(base.receiver, Pointer):
            a, b = self._norm(base.receiver), self._norm(head.receiver)
            return RECEIVER_CHANGED, f"Receiver changed from {a!r} to {b!r}"
        return None

    def _signature_violation(self, base: FuncDecl, head: FuncDecl) -> Optional[Tuple[str, str]]:
        """First incompatibility between two signatures, or None."""
        base_args, head_args = base.signature.params, head.signature.params
        extra = len(head_args) - len(base_args)
        if extra != 0:
            # appending a single variadic parameter keeps every call site valid
            if extra != 1 or not isinstance(head_args[-1], Variadic):
                return ARG_COUNT_CHANGED, "Argument count changed"
        for i, arg in enumerate(base_args):
            a, b = self._norm(arg), self._norm(head_args[i])
            if a != b:
                return ARG_TYPE_CHANGED, f"Argument {i} type changed from {a!r} to {b!r}"

        base_res, head_res = base.signature.results, head.signature.results
        if base_res is None and head_res is None:
            return None
        if base_res is None:
            return RESULTS_ADDED, "Results added"
        if head_res is None:
            return RESULTS_REMOVED, "Results removed"
        if len(base_res) != len(head_res):
            return RESULT_COUNT_CHANGED, "Return value count changed"
        for i, res in enumerate(base_res):
            a, b = self._norm(res), self._norm(head_res[i])
            if a != b:
                return RESULT_TYPE_CHANGED, f"Return value {i} type changed from {a!r} to {b!r}"
        return None
