"""Index of one snapshot's exported declarations for a single package."""
from typing import Dict, Iterable, Optional

from config import CheckConfig
from declarations import Declaration, FuncDecl, FuncKey, TypeDecl, ValueDecl


def is_public_func(decl: FuncDecl, config: CheckConfig) -> bool:
    """Exported functions, and exported methods on exported receivers.

    Methods on unexported receivers count only when the config asks for them.
    """
    if not config.is_public(decl.name):
        return False
    receiver = decl.receiver_name
    if receiver is None or config.include_unexported_receivers:
        return True
    return config.is_public(receiver)


class DeclarationSummary:
    """Write-once lookup tables of the exported surface of a package.

    Use ``DeclarationSummary.build`` to index a stream of declarations; the
    result is frozen and only serves lookups afterwards.
    """

    def __init__(self, package: str, config: Optional[CheckConfig] = None) -> None:
        self.package = package
        self.config = config or CheckConfig()
        self._funcs: Dict[FuncKey, FuncDecl] = {}
        self._types: Dict[str, TypeDecl] = {}
        self._values: Dict[str, ValueDecl] = {}
        self._frozen = False

    @classmethod
    def build(
        cls,
        package: str,
        declarations: Iterable[Declaration],
        config: Optional[CheckConfig] = None,
    ) -> "DeclarationSummary":
        summary = cls(package, config)
        for decl in declarations:
            summary.record(decl)
        summary.freeze()
        return summary

    def freeze(self) -> None:
        self._frozen = True

    def record(self, decl: Declaration) -> None:
        """Index an exported declaration; a repeated key overwrites the old one."""
        if self._frozen:
            raise RuntimeError(f"summary for {self.package} is already built")
        is_public = self.config.is_public
        if isinstance(decl, FuncDecl):
            if is_public_func(decl, self.config):
                self._funcs[decl.key] = decl
        elif isinstance(decl, TypeDecl):
            if is_public(decl.name):
                self._types[decl.name] = decl
        elif isinstance(decl, ValueDecl):
            for name in decl.names:
                if is_public(name):
                    self._values[name] = decl
        else:
            raise TypeError(f"not a declaration: {decl!r}")

    def lookup_func(self, key: FuncKey) -> Optional[FuncDecl]:
        return self._funcs.get(key)

    def lookup_type(self, name: str) -> Optional[TypeDecl]:
        return self._types.get(name)

    def lookup_value(self, name: str) -> Optional[ValueDecl]:
        return self._values.get(name)

    def __len__(self) -> int:
        return len(self._funcs) + len(self._types) + len(self._values)
