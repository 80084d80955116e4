from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from . import __version__
from .aes_engine import state_hex
from .cipher_engine import Algorithm, CipherEngine, CipherResult
from .errors import CipherError
from .export import steps_workbook
from .gf_math import AES_INV_SBOX, AES_SBOX, RCON, verify_tables
from .schemas import (
    AESStepsRequest, AESStepsResponse, CipherRequest, CipherResponse, TablesResponse, WheelResponse
)
from dataclasses import asdict
import logging
import os

# Configure logging
logger = logging.getLogger("uvicorn")

CORS_ORIGINS = [o.strip() for o in os.environ.get("CIPHERLAB_CORS_ORIGINS", "*").split(",") if o.strip()]
MAX_INPUT_LENGTH = int(os.environ.get("CIPHERLAB_MAX_INPUT_LENGTH", "1024"))

app = FastAPI(title="CipherLab", version=__version__)
engine = CipherEngine()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"]
)

# --- Helpers ---

def _check_length(value: str, field: str):
    if len(value) > MAX_INPUT_LENGTH:
        raise HTTPException(status_code=413, detail=f"{field} too long. Maximum is {MAX_INPUT_LENGTH} characters.")

def _unwrap(result: CipherResult) -> CipherResult:
    if not result.ok:
        logger.warning(f"Request rejected: {result.error.code}: {result.error.message}")
        raise HTTPException(status_code=400, detail={"code": result.error.code, "message": result.error.message})
    return result

def _cipher_response(result: CipherResult) -> dict:
    trace = [asdict(t) for t in result.trace] if result.trace is not None else None
    return {"output": result.output, "trace": trace}

def _steps_response(result: CipherResult) -> dict:
    return {
        "output": result.output,
        "steps": [
            {
                "name": step.name,
                "description": step.description,
                "operation": step.operation,
                "round": step.round,
                "state": state_hex(step.state),
                "prev_state": state_hex(step.prev_state),
                "round_key": state_hex(step.round_key) if step.round_key else None,
            }
            for step in result.steps
        ],
    }

def _run_steps(req: AESStepsRequest) -> CipherResult:
    _check_length(req.block, "Block")
    return _unwrap(engine.aes_steps(req.direction, req.block, req.key))

# --- Routes ---

@app.get("/")
def read_root():
    return {"name": "cipherlab", "version": __version__, "algorithms": [a.value for a in Algorithm]}

@app.post("/encrypt", response_model=CipherResponse)
def encrypt_text(req: CipherRequest):
    _check_length(req.input, "Input")
    logger.info(f"Encrypt request: algorithm={req.algorithm} mode={req.mode} length={len(req.input)}")
    result = _unwrap(engine.encrypt(req.algorithm, req.input, req.key, req.mode))
    return _cipher_response(result)

@app.post("/decrypt", response_model=CipherResponse)
def decrypt_text(req: CipherRequest):
    _check_length(req.input, "Input")
    logger.info(f"Decrypt request: algorithm={req.algorithm} mode={req.mode} length={len(req.input)}")
    result = _unwrap(engine.decrypt(req.algorithm, req.input, req.key, req.mode))
    return _cipher_response(result)

@app.post("/aes/steps", response_model=AESStepsResponse)
def aes_steps(req: AESStepsRequest):
    logger.info(f"AES steps request: direction={req.direction}")
    return _steps_response(_run_steps(req))

@app.post("/aes/steps/export")
def export_aes_steps(req: AESStepsRequest):
    result = _run_steps(req)
    output = steps_workbook(result.steps)
    headers = {
        'Content-Disposition': f'attachment; filename="aes_{req.direction}_steps.xlsx"'
    }
    return StreamingResponse(output, headers=headers, media_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')

@app.get("/caesar/wheel", response_model=WheelResponse)
def caesar_wheel(shift: int = Query(0)):
    try:
        view = engine.wheel(shift)
    except CipherError as e:
        raise HTTPException(status_code=400, detail={"code": e.code, "message": e.message})
    return {"shift": view.shift, "outer": view.outer, "inner": view.inner}

@app.get("/aes/tables", response_model=TablesResponse)
def aes_tables():
    verified = verify_tables()
    if not verified:
        logger.error("Embedded AES tables do not match their algebraic definition")
    return {
        "sbox": list(AES_SBOX),
        "inv_sbox": list(AES_INV_SBOX),
        "rcon": list(RCON),
        "verified": verified,
    }
