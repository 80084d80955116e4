import os
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import BlockAlignmentError, KeyLengthError, PaddingError, UnsupportedModeError
from .gf_math import AES_INV_SBOX, AES_SBOX, RCON, gf_mult

logger = logging.getLogger(__name__)

NB = 4   # columns in the state
NK = 4   # 32-bit words in the key
NR = 10  # rounds for AES-128
BLOCK_SIZE = 16
KEY_SIZE = 16

MODES = ("ecb", "cbc")

State = List[List[int]]


@dataclass(frozen=True)
class RoundKeySchedule:
    """The 44 expanded words of an AES-128 key, grouped 4 per round key."""
    words: Tuple[Tuple[int, int, int, int], ...]

    def round_key(self, round_idx: int) -> bytes:
        return bytes(b for word in self.words[round_idx * NB:(round_idx + 1) * NB] for b in word)

    def round_key_state(self, round_idx: int) -> State:
        return bytes_to_state(self.round_key(round_idx))

    def __len__(self):
        return len(self.words) // NB


@dataclass
class AESStep:
    name: str
    description: str
    operation: str
    round: int
    state: State
    prev_state: State
    round_key: Optional[State] = None


def _check_key(key) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise TypeError(f"AES key must be bytes, not {type(key).__name__}")
    key = bytes(key)
    if len(key) != KEY_SIZE:
        raise KeyLengthError(f"AES-128 key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def _check_block(block) -> bytes:
    if not isinstance(block, (bytes, bytearray)):
        raise TypeError(f"AES block must be bytes, not {type(block).__name__}")
    block = bytes(block)
    if len(block) != BLOCK_SIZE:
        raise BlockAlignmentError(f"AES block must be {BLOCK_SIZE} bytes, got {len(block)}")
    return block


def _check_aligned(data: bytes):
    if len(data) % BLOCK_SIZE != 0:
        raise BlockAlignmentError(
            f"Data length {len(data)} is not a multiple of {BLOCK_SIZE} bytes"
        )


def _rot_word(word):
    return word[1:] + word[:1]


def _sub_word(word):
    return [AES_SBOX[b] for b in word]


def key_expansion(key) -> RoundKeySchedule:
    key = _check_key(key)
    w = [list(key[4 * i:4 * i + 4]) for i in range(NK)]

    for i in range(NK, NB * (NR + 1)):
        temp = w[i - 1]
        if i % NK == 0:
            temp = _sub_word(_rot_word(temp))
            temp[0] ^= RCON[i // NK - 1]
        w.append([a ^ b for a, b in zip(w[i - NK], temp)])

    return RoundKeySchedule(tuple(tuple(word) for word in w))


# --- state helpers (state[row][col], filled column by column) ---

def bytes_to_state(data: bytes) -> State:
    state = [[0] * NB for _ in range(4)]
    for i in range(BLOCK_SIZE):
        state[i % 4][i // 4] = data[i]
    return state


def state_to_bytes(state: State) -> bytes:
    return bytes(state[i % 4][i // 4] for i in range(BLOCK_SIZE))


def copy_state(state: State) -> State:
    return [row[:] for row in state]


def state_hex(state: State) -> List[List[str]]:
    return [[f"{b:02x}" for b in row] for row in state]


# --- round transformations, all operate in place and return the state ---

def add_round_key(state: State, schedule: RoundKeySchedule, round_idx: int) -> State:
    for c in range(NB):
        word = schedule.words[round_idx * NB + c]
        for r in range(4):
            state[r][c] ^= word[r]
    return state


def sub_bytes(state: State) -> State:
    for r in range(4):
        for c in range(NB):
            state[r][c] = AES_SBOX[state[r][c]]
    return state


def inv_sub_bytes(state: State) -> State:
    for r in range(4):
        for c in range(NB):
            state[r][c] = AES_INV_SBOX[state[r][c]]
    return state


def shift_rows(state: State) -> State:
    for r in range(1, 4):
        state[r] = state[r][r:] + state[r][:r]
    return state


def inv_shift_rows(state: State) -> State:
    for r in range(1, 4):
        state[r] = state[r][-r:] + state[r][:-r]
    return state


def mix_columns(state: State) -> State:
    for c in range(NB):
        col = [state[r][c] for r in range(4)]
        state[0][c] = gf_mult(col[0], 2) ^ gf_mult(col[1], 3) ^ col[2] ^ col[3]
        state[1][c] = col[0] ^ gf_mult(col[1], 2) ^ gf_mult(col[2], 3) ^ col[3]
        state[2][c] = col[0] ^ col[1] ^ gf_mult(col[2], 2) ^ gf_mult(col[3], 3)
        state[3][c] = gf_mult(col[0], 3) ^ col[1] ^ col[2] ^ gf_mult(col[3], 2)
    return state


def inv_mix_columns(state: State) -> State:
    for c in range(NB):
        col = [state[r][c] for r in range(4)]
        state[0][c] = gf_mult(col[0], 0x0e) ^ gf_mult(col[1], 0x0b) ^ gf_mult(col[2], 0x0d) ^ gf_mult(col[3], 0x09)
        state[1][c] = gf_mult(col[0], 0x09) ^ gf_mult(col[1], 0x0e) ^ gf_mult(col[2], 0x0b) ^ gf_mult(col[3], 0x0d)
        state[2][c] = gf_mult(col[0], 0x0d) ^ gf_mult(col[1], 0x09) ^ gf_mult(col[2], 0x0e) ^ gf_mult(col[3], 0x0b)
        state[3][c] = gf_mult(col[0], 0x0b) ^ gf_mult(col[1], 0x0d) ^ gf_mult(col[2], 0x09) ^ gf_mult(col[3], 0x0e)
    return state


_OPERATIONS = {
    "subbytes": (sub_bytes, "SubBytes", "Replace each byte using S-box lookup table"),
    "shiftrows": (shift_rows, "ShiftRows", "Cyclically shift rows left by 0, 1, 2, 3 positions"),
    "mixcolumns": (mix_columns, "MixColumns", "Mix columns using matrix multiplication in GF(2^8)"),
    "invsubbytes": (inv_sub_bytes, "InvSubBytes", "Replace each byte using inverse S-box lookup"),
    "invshiftrows": (inv_shift_rows, "InvShiftRows", "Cyclically shift rows right by 0, 1, 2, 3 positions"),
    "invmixcolumns": (inv_mix_columns, "InvMixColumns", "Inverse mix columns using matrix multiplication in GF(2^8)"),
}


class _Recorder:
    """Applies round transformations and optionally snapshots each one."""

    def __init__(self, state: State, schedule: RoundKeySchedule, steps: Optional[List[AESStep]]):
        self.state = state
        self.schedule = schedule
        self.steps = steps

    def _record(self, name, description, operation, round_no, prev, round_key=None):
        if self.steps is not None:
            self.steps.append(AESStep(name, description, operation, round_no,
                                      copy_state(self.state), prev, round_key))

    def initial(self, name, description):
        if self.steps is not None:
            self._record(name, description, "initial", 0, copy_state(self.state))

    def apply(self, op: str, round_no: int):
        func, label, description = _OPERATIONS[op]
        prev = copy_state(self.state) if self.steps is not None else None
        func(self.state)
        self._record(f"Round {round_no}: {label}", description, op.replace("inv", ""), round_no, prev)

    def add_round_key(self, key_idx: int, round_no: int, name: str, description: str):
        prev = copy_state(self.state) if self.steps is not None else None
        add_round_key(self.state, self.schedule, key_idx)
        if self.steps is not None:
            self._record(name, description, "addroundkey", round_no, prev,
                         self.schedule.round_key_state(key_idx))


def _encrypt_core(block: bytes, schedule: RoundKeySchedule, steps=None) -> bytes:
    rec = _Recorder(bytes_to_state(block), schedule, steps)
    rec.initial("Initial State", "Convert plaintext to 4x4 byte matrix (column-major order)")
    rec.add_round_key(0, 0, "Add Round Key (Initial)", "XOR state with first round key")

    for rnd in range(1, NR):
        rec.apply("subbytes", rnd)
        rec.apply("shiftrows", rnd)
        rec.apply("mixcolumns", rnd)
        rec.add_round_key(rnd, rnd, f"Round {rnd}: AddRoundKey", f"XOR state with round key {rnd}")

    rec.apply("subbytes", NR)
    rec.apply("shiftrows", NR)
    rec.add_round_key(NR, NR, f"Round {NR}: AddRoundKey (Final)",
                      "XOR state with final round key - Encryption complete!")
    return state_to_bytes(rec.state)


def _decrypt_core(block: bytes, schedule: RoundKeySchedule, steps=None) -> bytes:
    rec = _Recorder(bytes_to_state(block), schedule, steps)
    rec.initial("Initial Ciphertext", "Start with the encrypted 4x4 byte matrix")
    rec.add_round_key(NR, 0, "Add Round Key (Initial)", "XOR state with last round key")

    for key_idx in range(NR - 1, 0, -1):
        rnd = NR - key_idx
        rec.apply("invshiftrows", rnd)
        rec.apply("invsubbytes", rnd)
        rec.add_round_key(key_idx, rnd, f"Round {rnd}: AddRoundKey", f"XOR state with round key {key_idx}")
        rec.apply("invmixcolumns", rnd)

    rec.apply("invshiftrows", NR)
    rec.apply("invsubbytes", NR)
    rec.add_round_key(0, NR, f"Round {NR}: AddRoundKey (Final)",
                      "XOR state with initial round key - Decryption complete!")
    return state_to_bytes(rec.state)


def encrypt_block(block, schedule: RoundKeySchedule) -> bytes:
    return _encrypt_core(_check_block(block), schedule)


def decrypt_block(block, schedule: RoundKeySchedule) -> bytes:
    return _decrypt_core(_check_block(block), schedule)


def encrypt_block_steps(block, key) -> List[AESStep]:
    steps: List[AESStep] = []
    _encrypt_core(_check_block(block), key_expansion(key), steps)
    return steps


def decrypt_block_steps(block, key) -> List[AESStep]:
    steps: List[AESStep] = []
    _decrypt_core(_check_block(block), key_expansion(key), steps)
    return steps


def pkcs7_pad(data: bytes) -> bytes:
    pad_len = BLOCK_SIZE - (len(data) % BLOCK_SIZE)
    return data + bytes([pad_len] * pad_len)


def pkcs7_unpad(data: bytes) -> bytes:
    if not data:
        raise PaddingError("Cannot unpad empty data")
    pad_len = data[-1]
    if pad_len > BLOCK_SIZE or pad_len == 0 or data[-pad_len:] != bytes([pad_len] * pad_len):
        raise PaddingError("Invalid PKCS7 padding")
    return data[:-pad_len]


def _xor(a, b) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


class AES128:
    def __init__(self, key):
        self.schedule = key_expansion(key)

    def encrypt_block(self, block) -> bytes:
        return encrypt_block(block, self.schedule)

    def decrypt_block(self, block) -> bytes:
        return decrypt_block(block, self.schedule)

    def encrypt_ecb(self, data: bytes) -> bytes:
        _check_aligned(data)
        return b"".join(_encrypt_core(data[i:i + BLOCK_SIZE], self.schedule)
                        for i in range(0, len(data), BLOCK_SIZE))

    def decrypt_ecb(self, data: bytes) -> bytes:
        _check_aligned(data)
        return b"".join(_decrypt_core(data[i:i + BLOCK_SIZE], self.schedule)
                        for i in range(0, len(data), BLOCK_SIZE))

    def encrypt_cbc(self, data: bytes, iv: Optional[bytes] = None) -> bytes:
        if iv is None:
            iv = os.urandom(BLOCK_SIZE)
        elif len(iv) != BLOCK_SIZE:
            raise BlockAlignmentError(f"IV must be {BLOCK_SIZE} bytes, got {len(iv)}")
        data = pkcs7_pad(data)

        ciphertext = [iv]
        prev_block = iv
        for i in range(0, len(data), BLOCK_SIZE):
            prev_block = _encrypt_core(_xor(data[i:i + BLOCK_SIZE], prev_block), self.schedule)
            ciphertext.append(prev_block)
        return b"".join(ciphertext)

    def decrypt_cbc(self, full_data: bytes) -> bytes:
        _check_aligned(full_data)
        if len(full_data) < 2 * BLOCK_SIZE:
            raise BlockAlignmentError("CBC data must hold an IV and at least one block")

        prev_block = full_data[:BLOCK_SIZE]
        plaintext = []
        for i in range(BLOCK_SIZE, len(full_data), BLOCK_SIZE):
            chunk = full_data[i:i + BLOCK_SIZE]
            plaintext.append(_xor(_decrypt_core(chunk, self.schedule), prev_block))
            prev_block = chunk
        return pkcs7_unpad(b"".join(plaintext))


def _check_mode(mode: str) -> str:
    mode = mode.lower()
    if mode not in MODES:
        raise UnsupportedModeError(f"Unknown block mode: {mode}")
    return mode


def encrypt(plaintext: bytes, key, mode: str = "ecb", iv: Optional[bytes] = None) -> bytes:
    mode = _check_mode(mode)
    aes = AES128(key)
    logger.debug("AES-128 %s encrypt of %d bytes", mode, len(plaintext))
    if mode == "cbc":
        return aes.encrypt_cbc(plaintext, iv)
    return aes.encrypt_ecb(plaintext)


def decrypt(ciphertext: bytes, key, mode: str = "ecb") -> bytes:
    mode = _check_mode(mode)
    aes = AES128(key)
    logger.debug("AES-128 %s decrypt of %d bytes", mode, len(ciphertext))
    if mode == "cbc":
        return aes.decrypt_cbc(ciphertext)
    return aes.decrypt_ecb(ciphertext)
