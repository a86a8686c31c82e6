"""
Operation registry.

Operations are stateless singletons looked up by name.
"""

from types import MappingProxyType

from ..errors import UnknownOperation
from .augment import Augment, augment
from .base import AnimationData, Operation, OperationResult, SelectState
from .diminish import Diminish, Shorten, diminish, shorten

OPERATIONS = MappingProxyType({
    op.name: op
    for op in (augment, diminish, shorten)
})


def get_operation(name: str) -> Operation:
    """Look up a registered operation.

    Raises:
        UnknownOperation: If no operation has that name
    """
    try:
        return OPERATIONS[name]
    except KeyError:
        raise UnknownOperation(name) from None


def list_operations() -> list[str]:
    return sorted(OPERATIONS)


__all__ = [
    "OPERATIONS",
    "get_operation",
    "list_operations",
    "Operation",
    "OperationResult",
    "AnimationData",
    "SelectState",
    "Augment",
    "Diminish",
    "Shorten",
    "augment",
    "diminish",
    "shorten",
]
