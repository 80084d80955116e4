"""
Dispatcher used by the UI layer.

Every call validates its inputs first, then runs the selected cipher, and
always returns a CipherResult: either the full output or a structured
failure, never a partially transformed string.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from . import aes_engine, shift_cipher
from .errors import (
    CipherError,
    EncodingError,
    InvalidShiftError,
    KeyLengthError,
    UnsupportedAlgorithmError,
    UnsupportedModeError,
)

logger = logging.getLogger(__name__)


class Algorithm(str, Enum):
    SHIFT = "shift"
    AES = "aes"


@dataclass(frozen=True)
class CipherFailure:
    code: str
    message: str


@dataclass
class CipherResult:
    ok: bool
    output: Optional[str] = None
    trace: Optional[List[shift_cipher.TraceEntry]] = None
    steps: Optional[List[aes_engine.AESStep]] = None
    error: Optional[CipherFailure] = None

    @classmethod
    def failure(cls, exc: CipherError) -> "CipherResult":
        return cls(ok=False, error=CipherFailure(exc.code, exc.message))


@dataclass(frozen=True)
class WheelView:
    shift: int
    outer: str
    inner: str


def parse_algorithm(algorithm: Union[str, Algorithm]) -> Algorithm:
    try:
        return Algorithm(algorithm)
    except ValueError:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm: {algorithm!r}")


def parse_shift(key: Union[int, str]) -> int:
    """Accepts an int or a numeric string; the result is normalised into [0, 25]."""
    if isinstance(key, bool):
        raise InvalidShiftError("Shift must be an integer")
    if isinstance(key, int):
        return shift_cipher.normalize_shift(key)
    if isinstance(key, str):
        try:
            return shift_cipher.normalize_shift(int(key.strip()))
        except ValueError:
            raise InvalidShiftError(f"Shift must be an integer, got {key!r}")
    raise InvalidShiftError(f"Shift must be an integer, got {type(key).__name__}")


def parse_hex(value: str, what: str = "input") -> bytes:
    if not isinstance(value, str):
        raise EncodingError(f"{what} must be a hex string")
    compact = "".join(value.split())
    if len(compact) % 2:
        raise EncodingError(f"{what} has an odd number of hex digits")
    try:
        return bytes.fromhex(compact)
    except ValueError:
        raise EncodingError(f"{what} is not valid hex")


def parse_aes_key(key: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(key, (bytes, bytearray)):
        raw = bytes(key)
    else:
        raw = parse_hex(key, "key")
    if len(raw) != aes_engine.KEY_SIZE:
        raise KeyLengthError(f"AES-128 key must be {aes_engine.KEY_SIZE} bytes, got {len(raw)}")
    return raw


def parse_mode(mode: str) -> str:
    """Mode names are case-insensitive; an empty or missing mode means ECB."""
    if mode is not None and not isinstance(mode, str):
        raise UnsupportedModeError(f"Unknown block mode: {mode!r}")
    mode = (mode or "ecb").lower()
    if mode not in aes_engine.MODES:
        raise UnsupportedModeError(f"Unknown block mode: {mode!r}")
    return mode


class CipherEngine:
    def encrypt(self, algorithm, input, key, mode: str = "ecb") -> CipherResult:
        return self._run(shift_cipher.ENCRYPT, algorithm, input, key, mode)

    def decrypt(self, algorithm, input, key, mode: str = "ecb") -> CipherResult:
        return self._run(shift_cipher.DECRYPT, algorithm, input, key, mode)

    def _run(self, direction, algorithm, text, key, mode) -> CipherResult:
        try:
            algo = parse_algorithm(algorithm)
            if algo is Algorithm.SHIFT:
                shift = parse_shift(key)
                if not isinstance(text, str):
                    raise EncodingError("Shift cipher input must be text")
                output, trace = shift_cipher.transform_with_trace(text, shift, direction)
                return CipherResult(ok=True, output=output, trace=trace)

            raw_key = parse_aes_key(key)
            data = parse_hex(text)
            mode = parse_mode(mode)
            if direction == shift_cipher.ENCRYPT:
                out = aes_engine.encrypt(data, raw_key, mode)
            else:
                out = aes_engine.decrypt(data, raw_key, mode)
            return CipherResult(ok=True, output=out.hex())
        except CipherError as e:
            logger.info("Rejected %s/%s request: %s (%s)", algorithm, direction, e.code, e.message)
            return CipherResult.failure(e)

    def aes_steps(self, direction: str, block, key) -> CipherResult:
        """Round-by-round AES states for one 16-byte block."""
        try:
            raw_key = parse_aes_key(key)
            data = parse_hex(block, "block")
            if direction == shift_cipher.ENCRYPT:
                steps = aes_engine.encrypt_block_steps(data, raw_key)
            elif direction == shift_cipher.DECRYPT:
                steps = aes_engine.decrypt_block_steps(data, raw_key)
            else:
                raise UnsupportedAlgorithmError(f"Unknown direction: {direction!r}")
        except CipherError as e:
            logger.info("Rejected AES steps request: %s (%s)", e.code, e.message)
            return CipherResult.failure(e)
        final = aes_engine.state_to_bytes(steps[-1].state)
        return CipherResult(ok=True, output=final.hex(), steps=steps)

    def wheel(self, key) -> WheelView:
        shift = parse_shift(key)
        return WheelView(shift, shift_cipher.ALPHABET, shift_cipher.shifted_alphabet(shift))
