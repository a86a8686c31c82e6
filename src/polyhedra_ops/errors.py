"""Exceptions raised by the polyhedron model and operations."""


class PolyhedronError(Exception):
    """Base class for all errors raised by polyhedra_ops."""


class UnknownSolid(PolyhedronError, KeyError):
    """A solid name is not present in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown solid: {name!r}")

    def __str__(self) -> str:
        return self.args[0]


class UnknownOperation(PolyhedronError, KeyError):
    """An operation name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown operation: {name!r}")

    def __str__(self) -> str:
        return self.args[0]


class InvalidTarget(PolyhedronError, ValueError):
    """A face or peak does not belong to the polyhedron being operated on."""


class MissingOption(PolyhedronError, ValueError):
    """An operation needs a disambiguating option that was not given."""

    def __init__(self, option: str, message: str):
        self.option = option
        super().__init__(message)


class IllegalTransform(PolyhedronError, ValueError):
    """The requested transform would not produce a valid convex solid."""
