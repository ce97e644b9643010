"""The view of an image element that the resolver works through."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class Resource(Protocol):
    """Caller-supplied handle on one image.

    Implementations must be hashable by identity and weak-referenceable.
    """

    def get_address(self) -> str: ...

    def get_variants(self) -> str | None: ...

    def set_address(self, address: str, variants: str | None = None) -> None: ...

    def is_broken(self) -> bool: ...


class ImageResource:
    """In-memory image handle used by the CLI and tests.

    ``broken`` mirrors the load state the host page last reported. Without a
    ``loader`` a write leaves it as is, since nothing has loaded the new
    address yet. With one, every write asks the loader whether the new
    address loads and updates ``broken`` from the answer.
    """

    def __init__(
        self,
        address: str,
        variants: str | None = None,
        broken: bool = True,
        loader: Callable[[str], bool] | None = None,
    ) -> None:
        self.address = address
        self.variants = variants
        self.broken = broken
        self.history: list[str] = []
        self._loader = loader

    def __repr__(self) -> str:
        return f"ImageResource({self.address!r}, broken={self.broken})"

    def get_address(self) -> str:
        return self.address

    def get_variants(self) -> str | None:
        return self.variants

    def set_address(self, address: str, variants: str | None = None) -> None:
        self.history.append(self.address)
        self.address = address
        if variants is not None:
            self.variants = variants
        if self._loader is not None:
            self.broken = not self._loader(address)

    def is_broken(self) -> bool:
        return self.broken
