from pydantic import BaseModel
from typing import Any, List, Literal, Optional

class CipherRequest(BaseModel):
    algorithm: Literal["shift", "aes"]
    input: str
    key: Any # shift amount, or 32 hex digits for AES; checked by the engine
    mode: str = "ecb" # "ecb" or "cbc", any case

class TraceEntryOut(BaseModel):
    position: int
    input_symbol: str
    output_symbol: str
    input_index: int
    output_index: int

class CipherResponse(BaseModel):
    output: str
    trace: Optional[List[TraceEntryOut]] = None

class ErrorDetail(BaseModel):
    code: str
    message: str

class AESStepsRequest(BaseModel):
    direction: Literal["encrypt", "decrypt"] = "encrypt"
    block: str # 32 hex digits
    key: str

class AESStepOut(BaseModel):
    name: str
    description: str
    operation: str
    round: int
    state: List[List[str]]
    prev_state: List[List[str]]
    round_key: Optional[List[List[str]]] = None

class AESStepsResponse(BaseModel):
    output: str
    steps: List[AESStepOut]

class WheelResponse(BaseModel):
    shift: int
    outer: str
    inner: str

class TablesResponse(BaseModel):
    sbox: List[int]
    inv_sbox: List[int]
    rcon: List[int]
    verified: bool
