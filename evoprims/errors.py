"""Exception types shared by the evoprims package."""


class InvariantError(AssertionError):
    """A trusted constructor was handed a value outside its declared range.

    This is a programming error in the caller and is never caught inside the package.
    """


class DecodeError(ValueError):
    """External input (text or a serialized dict) could not be turned into a value."""
