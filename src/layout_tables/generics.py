"""Generic placeholder substitution for type requests."""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping

from layout_tables.types import TypeParams


def substitute(params: TypeParams, bindings: Mapping[str, str] | None) -> TypeParams:
    """Replace generic placeholders in a type request with their bindings.

    The type name and every type argument value is replaced by its binding
    when one exists and left unchanged otherwise. Keys of the type arguments
    never change. Only one layer is substituted per call; resolving a chain
    of aliases applies this once per hop.

    Args:
        params: The type request, possibly naming placeholders.
        bindings: Placeholder name to concrete type name, or None.

    Returns:
        A new request, or `params` itself when there are no bindings.
    """
    if bindings is None:
        return params

    type_args = params.type_args
    if type_args is not None:
        type_args = {key: bindings.get(value, value) for key, value in type_args.items()}

    return replace(
        params,
        type=bindings.get(params.type, params.type),
        type_args=type_args,
    )
