"""Check configuration passed explicitly through the engine."""
from dataclasses import dataclass
from typing import Callable, Tuple


def is_exported(name: str) -> bool:
    """Go exportedness: the first rune is an uppercase letter."""
    return bool(name) and name[0].isupper()


@dataclass(frozen=True)
class CheckConfig:
    base_ref: str = "HEAD"
    include_unexported_receivers: bool = False
    is_public: Callable[[str], bool] = is_exported
    jobs: int = 1
    # subtrees under these path segments are not importable from outside
    private_segments: Tuple[str, ...] = ("internal", "vendor")
