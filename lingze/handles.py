"""Single-owner handle that releases its resource when closed."""

from __future__ import annotations

from typing import Generic, Protocol, TypeVar


class Resettable(Protocol):
    def reset(self) -> None: ...


R = TypeVar("R", bound=Resettable)


class UniqueHandle(Generic[R]):
    """Owns a resource object whose ``reset()`` destroys it.

    Ownership moves with :meth:`take`; :meth:`close` (or leaving a ``with``
    block) destroys the resource if the handle still owns it.
    """

    def __init__(self, info: R | None = None, *, attached: bool | None = None) -> None:
        self._info = info
        self._attached = (info is not None) if attached is None else attached

    @property
    def info(self) -> R | None:
        """The underlying resource object."""
        return self._info

    @property
    def is_attached(self) -> bool:
        """Whether this handle owns the resource."""
        return self._attached

    def detach(self) -> None:
        """Give up ownership without destroying the resource."""
        self._attached = False

    def reset(self) -> None:
        """Detach and destroy the resource."""
        self.detach()
        if self._info is not None:
            self._info.reset()

    def take(self) -> UniqueHandle[R]:
        """Move ownership into a new handle; this one is left detached."""
        moved = UniqueHandle(self._info, attached=self._attached)
        self._attached = False
        return moved

    def close(self) -> None:
        """Destroy the resource if this handle owns it."""
        if self._attached:
            self._attached = False
            if self._info is not None:
                self._info.reset()

    def __enter__(self) -> UniqueHandle[R]:
        return self

    def __exit__(self, *args) -> None:
        self.close()