"""Key signatures: which natural letters a key sharps or flats by default."""

from dataclasses import dataclass

from cabbage.errors import InvalidKey

# Major keys, in circle-of-fifths order on each side.
MAJOR_SIGNATURES: dict[str, tuple[str, ...]] = {
    "C+": (),
    "G+": ("f#",),
    "D+": ("f#", "c#"),
    "A+": ("f#", "c#", "g#"),
    "E+": ("f#", "c#", "g#", "d#"),
    "B+": ("f#", "c#", "g#", "d#", "a#"),
    "F#+": ("f#", "c#", "g#", "d#", "a#", "e#"),
    "F+": ("bb",),
    "Bb+": ("bb", "eb"),
    "Eb+": ("bb", "eb", "ab"),
    "Ab+": ("bb", "eb", "ab", "db"),
    "Db+": ("bb", "eb", "ab", "db", "gb"),
    "Gb+": ("bb", "eb", "ab", "db", "gb", "cb"),
}

RELATIVE_MAJORS: dict[str, str] = {
    "a-": "C+",
    "e-": "G+",
    "b-": "D+",
    "f#-": "A+",
    "c#-": "E+",
    "g#-": "B+",
    "d#-": "F#+",
    "eb-": "Gb+",
    "bb-": "Db+",
    "f-": "Ab+",
    "c-": "Eb+",
    "g-": "Bb+",
    "d-": "F+",
}


@dataclass(frozen=True)
class Key:
    """
    A resolved key signature.

    Attributes:
        name:       The name the key was declared with, e.g. "G+" or "e-".
        signature:  (letter, accidental) pairs altered by default, in order.
        accidental: "#" for sharp keys, "b" for flat keys, "" for C major / A minor.
    """

    name: str
    signature: tuple[tuple[str, str], ...]
    accidental: str

    @property
    def is_minor(self) -> bool:
        return self.name.endswith("-")

    @property
    def sharps_or_flats(self) -> int:
        """Number of accidentals in the signature."""
        return len(self.signature)

    def accidental_for(self, letter: str) -> str:
        """Return the signature accidental for *letter*, or "" if it is natural."""
        if (letter, self.accidental) in self.signature:
            return self.accidental
        return ""


def resolve_key(name: str) -> Key:
    """
    Resolve a key name such as "D+" (D major) or "b-" (B minor).

    Raises:
        InvalidKey: If the name is not one of the supported keys.
    """
    major = RELATIVE_MAJORS.get(name) if name.endswith("-") else name
    if major not in MAJOR_SIGNATURES:
        raise InvalidKey(name)

    signature = tuple((entry[0], entry[1]) for entry in MAJOR_SIGNATURES[major])
    accidental = signature[0][1] if signature else ""
    return Key(name=name, signature=signature, accidental=accidental)
