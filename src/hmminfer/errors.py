"""Exceptions raised by the inference engines and the model builder."""


class HMMError(ValueError):
    """Base class for invalid input to hmminfer."""


class UnknownSymbol(HMMError):
    """A state label or observation symbol is not in the model."""

    def __init__(self, kind: str, symbol):
        self.kind = kind
        self.symbol = symbol
        super().__init__(f"Unknown {kind}: {symbol!r}")


class LengthMismatch(HMMError):
    """Two sequences that must be parallel differ in length."""

    def __init__(self, expected: int, actual: int, what: str = "sequence"):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{what} length mismatch: expected {expected}, got {actual}"
        )


class EmptySequence(HMMError):
    """An engine was given a zero-length observation sequence."""

    def __init__(self, what: str = "observation sequence"):
        super().__init__(f"Empty {what}")


class InvalidModel(HMMError):
    """Model tables have the wrong shape or are not probability distributions."""
