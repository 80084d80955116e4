import os

import pytest

from cipherlab import aes_engine
from cipherlab.aes_engine import (
    AES128, bytes_to_state, decrypt_block, decrypt_block_steps, encrypt_block,
    encrypt_block_steps, inv_mix_columns, inv_shift_rows, key_expansion, mix_columns,
    pkcs7_pad, pkcs7_unpad, shift_rows, state_to_bytes,
)
from cipherlab.errors import BlockAlignmentError, KeyLengthError, PaddingError, UnsupportedModeError

NIST_KEY = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
NIST_PLAIN = bytes.fromhex("00112233445566778899aabbccddeeff")
NIST_CIPHER = bytes.fromhex("69c4e0d86a7b0430d8cdb78070b4c55a")

# NIST SP 800-38A, F.1.1 / F.2.1
SP_KEY = bytes.fromhex("2b7e151628aed2a6abf7158809cf4f3c")
SP_PLAIN = bytes.fromhex("6bc1bee22e409f96e93d7e117393172a")


def test_key_expansion_fips_appendix_a():
    schedule = key_expansion(SP_KEY)
    assert len(schedule.words) == 44
    assert len(schedule) == 11
    assert bytes(schedule.words[4]) == bytes.fromhex("a0fafe17")
    assert bytes(schedule.words[43]) == bytes.fromhex("b6630ca6")
    assert schedule.round_key(0) == SP_KEY
    assert schedule.round_key(10) == bytes.fromhex("d014f9a8c9ee2589e13f0cc8b6630ca6")


def test_encrypt_block_nist_vector():
    schedule = key_expansion(NIST_KEY)
    assert encrypt_block(NIST_PLAIN, schedule) == NIST_CIPHER


def test_decrypt_block_nist_vector():
    schedule = key_expansion(NIST_KEY)
    assert decrypt_block(NIST_CIPHER, schedule) == NIST_PLAIN


def test_encrypt_block_fips_appendix_b():
    schedule = key_expansion(SP_KEY)
    plain = bytes.fromhex("3243f6a8885a308d313198a2e0370734")
    assert encrypt_block(plain, schedule).hex() == "3925841d02dc09fbdc118597196a0b32"


def test_block_round_trip_random():
    for _ in range(20):
        key = os.urandom(16)
        block = os.urandom(16)
        schedule = key_expansion(key)
        assert decrypt_block(encrypt_block(block, schedule), schedule) == block


@pytest.mark.parametrize("length", [0, 15, 17, 32])
def test_bad_key_length(length):
    with pytest.raises(KeyLengthError):
        key_expansion(bytes(length))


def test_bad_block_length():
    schedule = key_expansion(NIST_KEY)
    with pytest.raises(BlockAlignmentError):
        encrypt_block(bytes(15), schedule)
    with pytest.raises(BlockAlignmentError):
        decrypt_block(bytes(17), schedule)


def test_state_layout_is_column_major():
    state = bytes_to_state(bytes(range(16)))
    assert state[0] == [0, 4, 8, 12]
    assert state[1] == [1, 5, 9, 13]
    assert state_to_bytes(state) == bytes(range(16))


def test_shift_rows_and_inverse():
    state = bytes_to_state(bytes(range(16)))
    shifted = shift_rows([row[:] for row in state])
    assert shifted[0] == [0, 4, 8, 12]
    assert shifted[1] == [5, 9, 13, 1]
    assert shifted[3] == [15, 3, 7, 11]
    assert inv_shift_rows(shifted) == state


def test_mix_columns_known_column():
    # db 13 53 45 -> 8e 4d a1 bc
    state = [[0xdb] * 4, [0x13] * 4, [0x53] * 4, [0x45] * 4]
    mixed = mix_columns(state)
    assert [mixed[r][0] for r in range(4)] == [0x8e, 0x4d, 0xa1, 0xbc]
    restored = inv_mix_columns(mixed)
    assert [restored[r][0] for r in range(4)] == [0xdb, 0x13, 0x53, 0x45]


def test_ecb_matches_sp800_38a():
    ciphertext = AES128(SP_KEY).encrypt_ecb(SP_PLAIN)
    assert ciphertext.hex() == "3ad77bb40d7a3660a89ecaf32466ef97"


def test_ecb_rejects_misaligned_data():
    aes = AES128(NIST_KEY)
    with pytest.raises(BlockAlignmentError):
        aes.encrypt_ecb(bytes(15))
    with pytest.raises(BlockAlignmentError):
        aes.decrypt_ecb(bytes(33))


def test_ecb_multi_block_is_independent():
    aes = AES128(NIST_KEY)
    ciphertext = aes.encrypt_ecb(NIST_PLAIN * 2)
    assert ciphertext == NIST_CIPHER * 2
    assert aes.decrypt_ecb(ciphertext) == NIST_PLAIN * 2


def test_cbc_matches_sp800_38a_first_block():
    iv = bytes(range(16))
    ciphertext = AES128(SP_KEY).encrypt_cbc(SP_PLAIN, iv)
    assert ciphertext[:16] == iv
    assert ciphertext[16:32].hex() == "7649abac8119b246cee98e9b12e9197d"
    # full padding block appended
    assert len(ciphertext) == 48


def test_cbc_round_trip_with_random_iv():
    aes = AES128(NIST_KEY)
    message = b"attack at dawn, bring snacks"
    first = aes.encrypt_cbc(message)
    second = aes.encrypt_cbc(message)
    assert first != second
    assert aes.decrypt_cbc(first) == message
    assert aes.decrypt_cbc(second) == message


def test_cbc_rejects_short_or_misaligned_data():
    aes = AES128(NIST_KEY)
    with pytest.raises(BlockAlignmentError):
        aes.decrypt_cbc(bytes(16))
    with pytest.raises(BlockAlignmentError):
        aes.decrypt_cbc(bytes(40))


def test_cbc_bad_iv_length():
    with pytest.raises(BlockAlignmentError):
        AES128(NIST_KEY).encrypt_cbc(b"data", iv=bytes(8))


def test_pkcs7():
    assert pkcs7_pad(b"") == bytes([16] * 16)
    assert pkcs7_pad(b"abc") == b"abc" + bytes([13] * 13)
    assert pkcs7_unpad(pkcs7_pad(b"abc")) == b"abc"
    with pytest.raises(PaddingError):
        pkcs7_unpad(b"abc" + bytes([1, 2, 3]))
    with pytest.raises(PaddingError):
        pkcs7_unpad(bytes(16))


def test_module_level_modes():
    assert aes_engine.encrypt(NIST_PLAIN, NIST_KEY) == NIST_CIPHER
    assert aes_engine.decrypt(NIST_CIPHER, NIST_KEY, "ECB") == NIST_PLAIN
    ct = aes_engine.encrypt(b"hi", NIST_KEY, "cbc")
    assert aes_engine.decrypt(ct, NIST_KEY, "cbc") == b"hi"
    with pytest.raises(UnsupportedModeError):
        aes_engine.encrypt(NIST_PLAIN, NIST_KEY, "ctr")


def test_encrypt_steps_trace():
    steps = encrypt_block_steps(NIST_PLAIN, NIST_KEY)
    assert len(steps) == 41
    assert steps[0].operation == "initial"
    assert state_to_bytes(steps[0].state) == NIST_PLAIN
    # FIPS-197 C.1 round[1].start
    assert state_to_bytes(steps[1].state).hex() == "00102030405060708090a0b0c0d0e0f0"
    assert state_to_bytes(steps[2].state).hex() == "63cab7040953d051cd60e0e7ba70e18c"
    assert steps[2].name == "Round 1: SubBytes"
    assert steps[1].round_key is not None
    assert state_to_bytes(steps[-1].state) == NIST_CIPHER
    assert [s.operation for s in steps[-3:]] == ["subbytes", "shiftrows", "addroundkey"]
    assert not any(s.operation == "mixcolumns" and s.round == 10 for s in steps)


def test_decrypt_steps_trace():
    steps = decrypt_block_steps(NIST_CIPHER, NIST_KEY)
    assert len(steps) == 41
    assert steps[2].name == "Round 1: InvShiftRows"
    assert steps[2].operation == "shiftrows"
    assert state_to_bytes(steps[-1].state) == NIST_PLAIN
    for step in steps[1:]:
        assert step.prev_state is not None


def test_key_and_block_must_be_bytes():
    with pytest.raises(TypeError):
        key_expansion([0] * 15 + [256])
    with pytest.raises(TypeError):
        key_expansion(list(NIST_KEY))
    schedule = key_expansion(bytearray(NIST_KEY))
    with pytest.raises(TypeError):
        encrypt_block(16, schedule)
    with pytest.raises(TypeError):
        decrypt_block(list(NIST_CIPHER), schedule)
    assert encrypt_block(bytearray(NIST_PLAIN), schedule) == NIST_CIPHER
