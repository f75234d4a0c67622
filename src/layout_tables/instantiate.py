"""Resolution of type requests into instantiated types with computed sizes."""

from __future__ import annotations

import logging

from layout_tables.errors import (
    CyclicTypeError,
    SizeAssertionError,
    UnhandledTypeClassError,
    UnresolvableSizeError,
    UnresolvedTypeError,
)
from layout_tables.generics import substitute
from layout_tables.types import (
    AliasTypeDefinition,
    InstantiatedType,
    StructTypeDefinition,
    TypeDefinition,
    TypeParams,
    TypeRegistry,
)

logger = logging.getLogger(__name__)


def _request_key(params: TypeParams) -> str:
    args = ",".join(params.type_args.values()) if params.type_args else ""
    return f"{params.type}<{args}>"


class Instantiator:
    """Resolves type requests against a registry, depth first.

    Aliases are expanded, struct parents merged, sizes computed and size
    assertions checked. A request that re-enters a type already being
    resolved (same name and type arguments) raises CyclicTypeError.
    """

    def __init__(self, registry: TypeRegistry, entry_type: str | None = None) -> None:
        self.registry = registry
        self.entry_type = entry_type
        self._active: list[str] = []

    def instantiate(self, params: TypeParams) -> InstantiatedType:
        """Resolve a type request.

        Args:
            params: Type name plus optional type arguments, size and count.

        Returns:
            The instantiated type.

        Raises:
            UnresolvedTypeError: A referenced type does not exist.
            UnresolvableSizeError: No size can be determined for the type.
            SizeAssertionError: A struct's assertSize does not match.
            CyclicTypeError: The type contains itself.
        """
        key = _request_key(params)
        if key in self._active:
            chain = self._active[self._active.index(key):] + [key]
            raise CyclicTypeError(chain, entry_type=self.entry_type)

        self._active.append(key)
        try:
            return self._instantiate(params)
        finally:
            self._active.pop()

    def _instantiate(self, params: TypeParams) -> InstantiatedType:
        type_def = self.registry.get(params.type)
        if type_def is None:
            raise UnresolvedTypeError(
                f"Failed to resolve type {params.type}",
                type_name=params.type,
                entry_type=self.entry_type,
            )

        if isinstance(type_def, AliasTypeDefinition):
            expanded = substitute(type_def.expand(params), params.type_args)
            logger.debug("Expanding alias %s to %s", params.type, expanded.type)
            return self.instantiate(expanded)

        if isinstance(type_def, StructTypeDefinition) and type_def.extends is not None:
            type_def = self._merge_parent(type_def, params)

        single_size = self._single_size(type_def, params)
        total_size = single_size * (params.count if params.count is not None else 1)

        expected = type_def.assert_size
        if expected is not None and total_size != expected:
            raise SizeAssertionError(
                params.type, expected, total_size, entry_type=self.entry_type
            )

        return InstantiatedType(
            type_def=type_def,
            type_name=params.type,
            type_args=dict(params.type_args) if params.type_args is not None else None,
            single_size=single_size,
            total_size=total_size,
            variable_size=params.size,
            count=params.count,
        )

    def _merge_parent(
        self, type_def: StructTypeDefinition, params: TypeParams
    ) -> StructTypeDefinition:
        assert type_def.extends is not None
        parent = self.instantiate(substitute(type_def.extends, params.type_args))
        if not isinstance(parent.type_def, StructTypeDefinition):
            raise UnhandledTypeClassError(
                f"Struct {type_def.name} extends {parent.type_name}, "
                f"which is a {parent.type_class or 'primitive'}, not a struct",
                type_name=type_def.name,
                entry_type=self.entry_type,
            )
        logger.debug(
            "Merging %d fields of %s into %s",
            len(parent.type_def.fields), parent.type_name, type_def.name,
        )
        return type_def.merge_parent(parent.type_def)

    def _single_size(self, type_def: TypeDefinition, params: TypeParams) -> int:
        """Size of one element: explicit size, then declared size, then the sum of struct fields."""
        if params.size is not None:
            return params.size
        if type_def.declared_size is not None:
            return type_def.declared_size
        if isinstance(type_def, StructTypeDefinition):
            return sum(
                self.instantiate(substitute(f.params, params.type_args)).total_size
                for f in type_def.fields
            )
        raise UnresolvableSizeError(
            f"Failed to determine size of type {params.type}",
            type_name=params.type,
            entry_type=self.entry_type,
        )
