"""Batcher error classes.

Every fatal condition aborts the whole batch; nothing is retried internally.
NoSolutionFound is the only expected outcome in this module: it signals that
the caller should not attempt settlement.
"""


class BatcherError(Exception):
    """Base error for batch decoding, validation, clearing and settlement."""

    pass


class MalformedEncoding(BatcherError):
    """Encoded order buffer is not a whole number of fixed-width records."""

    pass


class InvalidSignature(BatcherError):
    """Recovered signer does not match the order owner."""

    pass


class OrderNotYetValid(BatcherError):
    """Order validity window has not started yet."""

    pass


class OrderExpired(BatcherError):
    """Order validity window has ended."""

    pass


class MismatchedTokenPairing(BatcherError):
    """The two sides do not trade one consistent token pair."""

    pass


class Unsorted(BatcherError):
    """Order side is not monotonic in limit price."""

    pass


class ArithmeticOverflow(BatcherError, ArithmeticError):
    """A uint256 product or sum exceeded 2^256 - 1."""

    pass


class NoSolutionFound(BatcherError):
    """Clearing exhausted both sides without a feasible price."""

    pass


class TransferFailed(BatcherError):
    """An asset transfer reported failure during settlement."""

    pass
