"""Exceptions raised while compiling a song.

Every error here describes a problem with the author's input, so each one
carries enough context to find the offending declaration, section, line or
token. The CLI reports them and exits; nothing retries them.
"""

from __future__ import annotations

from fractions import Fraction

from cabbage.config import LENGTH_EPSILON


def _format_length(length: Fraction) -> str:
    """Render a quarter-note length as a short decimal, e.g. 1.5."""
    return f"{float(length):g}"


def _describe(label: str, length: Fraction, expected: Fraction) -> str:
    line = f"  {label}: {_format_length(length)}"
    difference = length - expected
    if abs(difference) > LENGTH_EPSILON:
        sign = "+" if difference > 0 else ""
        line += f"  <- off by {sign}{_format_length(difference)}"
    return line


def _where(section: str | None, symbol: str | None) -> str:
    parts = []
    if section is not None:
        parts.append(f"measure(s) {section}")
    if symbol is not None:
        parts.append(f"voice '{symbol}'")
    return f" (in {', '.join(parts)})" if parts else ""


class CompileError(ValueError):
    """Base class for all notation and declaration errors."""


class InvalidKey(CompileError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid key '{name}'.")


class UnresolvableInstrumentProgram(CompileError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Can't find instrument '{name}'.")


class DuplicateInstrument(CompileError):
    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Instrument '{symbol}' is already declared.")


class UnknownInstrument(CompileError):
    def __init__(self, symbol: str, section: str | None = None) -> None:
        self.symbol = symbol
        self.section = section
        super().__init__(f"Undefined instrument '{symbol}'{_where(section, None)}.")


class UnparseableToken(CompileError):
    """A notation token matched neither the note nor the rest grammar."""

    def __init__(
        self,
        token: str,
        symbol: str | None = None,
        section: str | None = None,
    ) -> None:
        self.token = token
        self.symbol = symbol
        self.section = section
        super().__init__(f"Couldn't parse note '{token}'{_where(section, symbol)}.")

    def locate(self, symbol: str, section: str | None) -> UnparseableToken:
        """Return a copy of this error that also names the voice and section."""
        return UnparseableToken(self.token, symbol=symbol, section=section)


class SectionLengthMismatch(CompileError):
    """
    The voices of a section do not all add up to the section length.

    Attributes:
        section:  Label of the offending section, e.g. "4..5".
        expected: Section length in quarter notes.
        lengths:  (voice label, length contributed to this section) per voice,
                  in voice-creation order.
    """

    def __init__(
        self,
        section: str,
        expected: Fraction,
        lengths: list[tuple[str, Fraction]],
    ) -> None:
        self.section = section
        self.expected = expected
        self.lengths = lengths
        detail = "\n".join(_describe(label, length, expected) for label, length in lengths)
        super().__init__(
            f"Your voices in measure(s) {section} should be "
            f"{_format_length(expected)} quarter notes long:\n{detail}"
        )

    @property
    def mismatched(self) -> list[tuple[str, Fraction]]:
        """(voice label, signed difference) for every voice that is off."""
        return [
            (label, length - self.expected)
            for label, length in self.lengths
            if abs(length - self.expected) > LENGTH_EPSILON
        ]


class TooManyVoices(CompileError):
    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(f"Too many voices. Maximum is {limit}. You have {count}.")


class SongFileError(CompileError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid song file '{path}': {reason}")
