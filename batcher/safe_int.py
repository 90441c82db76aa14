"""Checked uint256 arithmetic for amounts, reserves and prices.

The on-chain checker evaluates every product and sum in 256-bit unsigned
arithmetic and reverts on overflow. SafeUint256 reproduces that behaviour so
that an off-chain result is either bit-identical to the on-chain one or fails
loudly:
- Results above 2^256 - 1 raise ArithmeticOverflow
- Subtraction underflow raises Underflow
- Division by zero raises DivisionByZero

Usage pattern:
    from batcher.safe_int import U

    def spot_value(amount: int, reserve_in: int, reserve_out: int) -> int:
        # Wrap at entry
        a, r_in, r_out = U(amount), U(reserve_in), U(reserve_out)

        # Natural arithmetic - automatically checked
        return (a * r_out // r_in).value
"""

from __future__ import annotations

from batcher.errors import ArithmeticOverflow

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Base class for non-overflow arithmetic errors."""

    pass


class DivisionByZero(SafeIntError):
    """Division or modulo by zero."""

    pass


class Underflow(SafeIntError):
    """Subtraction would produce a negative result."""

    pass


class SafeUint256:
    """Unsigned 256-bit integer with checked arithmetic.

    Construction validates the range, and every operator re-validates its
    result, so a SafeUint256 never holds a value the EVM could not.

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeUint256) -> None:
        """Create a SafeUint256 from an integer or another SafeUint256.

        Raises:
            TypeError: If value is not an int or SafeUint256
            ArithmeticOverflow: If value is outside [0, 2^256 - 1]
        """
        if isinstance(value, SafeUint256):
            self._value = value._value
            return
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"SafeUint256 requires int, got {type(value).__name__}")
        if value < 0:
            raise Underflow(f"Negative value cannot be uint256: {value}")
        if value > UINT256_MAX:
            raise ArithmeticOverflow(f"Value exceeds uint256 max: {value}")
        self._value = value

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeUint256({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic operations ---

    def __add__(self, other: SafeUint256 | int) -> SafeUint256:
        """Add two values.

        Raises:
            ArithmeticOverflow: If the sum exceeds uint256
        """
        other_val = _extract_value(other)
        result = self._value + other_val
        if result > UINT256_MAX:
            raise ArithmeticOverflow(f"Addition overflow: {self._value} + {other_val}")
        return SafeUint256(result)

    def __radd__(self, other: int) -> SafeUint256:
        return self.__add__(other)

    def __sub__(self, other: SafeUint256 | int) -> SafeUint256:
        """Subtract other from self.

        Raises:
            Underflow: If result would be negative
        """
        other_val = _extract_value(other)
        result = self._value - other_val
        if result < 0:
            raise Underflow(f"Underflow: {self._value} - {other_val} = {result}")
        return SafeUint256(result)

    def __rsub__(self, other: int) -> SafeUint256:
        result = other - self._value
        if result < 0:
            raise Underflow(f"Underflow: {other} - {self._value} = {result}")
        return SafeUint256(result)

    def __mul__(self, other: SafeUint256 | int) -> SafeUint256:
        """Multiply two values.

        Raises:
            ArithmeticOverflow: If the product exceeds uint256
        """
        other_val = _extract_value(other)
        result = self._value * other_val
        if result > UINT256_MAX:
            raise ArithmeticOverflow(
                f"Multiplication overflow: {self._value} * {other_val}"
            )
        return SafeUint256(result)

    def __rmul__(self, other: int) -> SafeUint256:
        return self.__mul__(other)

    def __floordiv__(self, other: SafeUint256 | int) -> SafeUint256:
        """Integer division.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeUint256(self._value // other_val)

    def __rfloordiv__(self, other: int) -> SafeUint256:
        if self._value == 0:
            raise DivisionByZero(f"Division by zero: {other} // 0")
        return SafeUint256(other // self._value)

    def __mod__(self, other: SafeUint256 | int) -> SafeUint256:
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Modulo by zero: {self._value} % 0")
        return SafeUint256(self._value % other_val)

    # --- Comparison operations ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeUint256):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeUint256 | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeUint256 | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeUint256 | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeUint256 | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        """True if non-zero."""
        return self._value != 0

    def __index__(self) -> int:
        return self._value

    @classmethod
    def zero(cls) -> SafeUint256:
        """Create a SafeUint256 with value 0."""
        return cls(0)


def _extract_value(x: SafeUint256 | int) -> int:
    """Extract integer value from SafeUint256 or int."""
    if isinstance(x, SafeUint256):
        return x._value
    return x


def checked_sum(values: list[int]) -> int:
    """Sum uint256 values, raising ArithmeticOverflow like a Solidity loop would."""
    total = SafeUint256.zero()
    for value in values:
        total = total + value
    return total.value


# Convenience alias for concise code
U = SafeUint256
