"""Exceptions raised while resolving and projecting layout schemas."""

from __future__ import annotations

from typing import Sequence


class LayoutError(ValueError):
    """Base class for every schema error. All of them abort the render call."""

    def __init__(
        self,
        message: str,
        type_name: str | None = None,
        entry_type: str | None = None,
        path: Sequence[str] | None = None,
    ) -> None:
        self.type_name = type_name
        self.entry_type = entry_type
        self.path = tuple(path) if path is not None else None
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        context = []
        if self.entry_type is not None:
            context.append(f"entry {self.entry_type}")
        if self.path:
            context.append(f"at {'/'.join(self.path)}")
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class UnresolvedTypeError(LayoutError):
    """A referenced type name has no registry entry."""


class UnresolvableSizeError(LayoutError):
    """A type's byte size cannot be determined from any source."""


class SizeAssertionError(LayoutError):
    """A declared assertSize does not match the computed size."""

    def __init__(
        self,
        type_name: str,
        expected: int,
        actual: int,
        entry_type: str | None = None,
        path: Sequence[str] | None = None,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Type {type_name} size did not match assertion: {actual} != {expected}",
            type_name=type_name,
            entry_type=entry_type,
            path=path,
        )


class UnhandledTypeClassError(LayoutError):
    """A type definition's class tag is not one the engine knows how to handle."""


class CyclicTypeError(LayoutError):
    """A type contains itself through its fields, parents or aliases."""

    def __init__(self, chain: Sequence[str], entry_type: str | None = None) -> None:
        self.chain = tuple(chain)
        super().__init__(
            f"Type {chain[-1]} contains itself: {' -> '.join(chain)}",
            type_name=chain[-1],
            entry_type=entry_type,
        )


class SchemaFormatError(LayoutError):
    """Raw schema data does not have the expected shape."""
