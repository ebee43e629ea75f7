from __future__ import annotations

import enum
from collections.abc import Callable
from typing import NamedTuple, Protocol, TypedDict, Union


class StatResult(TypedDict):
    size: int
    modified_at: float
    is_dir: bool
    is_symlink: bool


class FileSystem(Protocol):
    """Capability set the walker needs from a filesystem provider.

    All paths use ``/`` as separator. Failures are reported by raising
    :class:`OSError` subclasses.
    """

    def stat(self, path: str) -> StatResult: ...

    def lstat(self, path: str) -> StatResult: ...

    def listdir(self, path: str) -> list[str]: ...

    def realpath(self, path: str) -> str: ...


class WalkAction(enum.Enum):
    CONTINUE = "continue"
    SKIP_SUBTREE = "skip_subtree"


class Abort(NamedTuple):
    """Visitor result that stops the walk; ``cause`` is raised to the caller."""

    cause: BaseException


VisitResult = Union[WalkAction, Abort, None]
Visitor = Callable[[str, Union[StatResult, None], Union[OSError, None]], VisitResult]
