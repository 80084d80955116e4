class CipherError(ValueError):
    """Base class for every input problem the engine rejects."""
    code = "CipherError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class KeyLengthError(CipherError):
    code = "KeyLength"


class BlockAlignmentError(CipherError):
    code = "BlockAlignment"


class EncodingError(CipherError):
    code = "Encoding"


class InvalidShiftError(CipherError):
    code = "InvalidShift"


class PaddingError(CipherError):
    code = "Padding"


class UnsupportedAlgorithmError(CipherError):
    code = "UnsupportedAlgorithm"


class UnsupportedModeError(CipherError):
    code = "UnsupportedMode"
