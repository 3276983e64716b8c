from __future__ import annotations

from dataclasses import dataclass


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class VariantKey:
    """Color/size selection that identifies a line together with its product.

    ``VariantKey()`` is the "no variant" key. Blank strings are treated as
    missing, so ``VariantKey(color=" ")`` equals ``VariantKey()``.
    """

    color: str | None = None
    size: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", _clean(self.color))
        object.__setattr__(self, "size", _clean(self.size))

    @property
    def is_empty(self) -> bool:
        return self.color is None and self.size is None

    def as_columns(self) -> dict[str, str]:
        # NULL no participa en UNIQUE, por eso "sin variante" se guarda como "".
        return {"color": self.color or "", "size": self.size or ""}

    @classmethod
    def from_columns(cls, color: str | None, size: str | None) -> "VariantKey":
        return cls(color=color, size=size)
