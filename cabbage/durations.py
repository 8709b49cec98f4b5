"""Duration arithmetic in quarter-note units.

All lengths are exact ``Fraction`` values: a quarter note is 1, a dotted
quarter 3/2, a whole note 4. Nothing here rounds.
"""

import re
from dataclasses import dataclass
from fractions import Fraction

_TIME_SIGNATURE_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")


@dataclass(frozen=True)
class Duration:
    """A notated duration: fraction-of-a-whole-note denominator plus dots."""

    denominator: int
    dots: int = 0

    @property
    def length(self) -> Fraction:
        return note_length(self.denominator, self.dots)

    def __str__(self) -> str:
        return f"{self.denominator}{'.' * self.dots}"


@dataclass(frozen=True)
class TimeSignature:
    """Beats per measure over the beat unit, e.g. 6/8."""

    numerator: int
    denominator: int

    def __post_init__(self) -> None:
        if self.numerator <= 0 or self.denominator <= 0:
            raise ValueError(f"Invalid time signature {self.numerator}/{self.denominator}.")

    @classmethod
    def parse(cls, text: str) -> "TimeSignature":
        """Parse "6/8" style text."""
        match = _TIME_SIGNATURE_RE.match(text)
        if not match:
            raise ValueError(f"Invalid time signature '{text}'. Use the form 3/4.")
        return cls(int(match.group(1)), int(match.group(2)))

    @property
    def beat_length(self) -> Fraction:
        return Fraction(4, self.denominator)

    @property
    def measure_length(self) -> Fraction:
        return self.beat_length * self.numerator

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


def note_length(denominator: int, dots: int = 0) -> Fraction:
    """
    Length of a (possibly dotted) note in quarter notes.

    Each dot adds half of the previous addition, so the length is
    ``base * (2 - 2**-dots)`` where ``base = 4 / denominator``.

    Raises:
        ValueError: If the denominator is not positive or dots is negative.
    """
    if denominator <= 0:
        raise ValueError(f"Note denominator must be positive, got {denominator}.")
    if dots < 0:
        raise ValueError(f"Dot count must not be negative, got {dots}.")
    base = Fraction(4, denominator)
    return base * (2 - Fraction(1, 2**dots))


def measure_rest_length(time_signature: TimeSignature, measures: int) -> Fraction:
    """Length of *measures* whole measures of *time_signature*, in quarter notes."""
    return time_signature.measure_length * measures
