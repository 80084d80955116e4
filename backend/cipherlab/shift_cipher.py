import logging
from dataclasses import dataclass
from typing import List, Tuple

logger = logging.getLogger(__name__)

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_INDEX = {letter: i for i, letter in enumerate(ALPHABET)}

ENCRYPT = "encrypt"
DECRYPT = "decrypt"
DIRECTIONS = (ENCRYPT, DECRYPT)


@dataclass(frozen=True)
class TraceEntry:
    """One letter mapped by the wheel: where it was and what it became."""
    position: int
    input_symbol: str
    output_symbol: str
    input_index: int
    output_index: int


def normalize_shift(shift: int) -> int:
    return shift % len(ALPHABET)


def _effective_shift(shift: int, direction: str) -> int:
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown direction: {direction}")
    shift = normalize_shift(shift)
    return shift if direction == ENCRYPT else normalize_shift(-shift)


def _map_char(ch: str, shift: int):
    # ASCII letters only; everything else passes through
    idx = _INDEX.get(ch.upper()) if ch.isascii() else None
    if idx is None:
        return ch, None, None
    out_idx = (idx + shift) % len(ALPHABET)
    out = ALPHABET[out_idx]
    return (out if ch.isupper() else out.lower()), idx, out_idx


def transform(text: str, shift: int, direction: str = ENCRYPT) -> str:
    effective = _effective_shift(shift, direction)
    return "".join(_map_char(ch, effective)[0] for ch in text)


def transform_with_trace(text: str, shift: int, direction: str = ENCRYPT) -> Tuple[str, List[TraceEntry]]:
    effective = _effective_shift(shift, direction)
    out_chars = []
    trace = []
    for pos, ch in enumerate(text):
        out, idx, out_idx = _map_char(ch, effective)
        out_chars.append(out)
        if idx is not None:
            trace.append(TraceEntry(pos, ch, out, idx, out_idx))
    logger.debug("Shift %s of %d chars by %d, %d traced", direction, len(text), effective, len(trace))
    return "".join(out_chars), trace


def encrypt(text: str, shift: int) -> str:
    return transform(text, shift, ENCRYPT)


def decrypt(text: str, shift: int) -> str:
    return transform(text, shift, DECRYPT)


def shifted_alphabet(shift: int) -> str:
    """Inner ring of the alphabet wheel: letter i sits under ALPHABET[i]."""
    shift = normalize_shift(shift)
    return ALPHABET[shift:] + ALPHABET[:shift]
