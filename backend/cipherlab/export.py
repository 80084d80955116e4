import io
from typing import List

import pandas as pd

from .aes_engine import AESStep, state_hex
from .gf_math import AES_SBOX


def _flat_hex(state) -> str:
    # column-major, matching the byte order of the block
    rows = state_hex(state)
    return " ".join(rows[r][c] for c in range(4) for r in range(4))


def steps_frame(steps: List[AESStep]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Step": idx + 1,
                "Round": step.round,
                "Operation": step.operation,
                "Name": step.name,
                "Before": _flat_hex(step.prev_state),
                "After": _flat_hex(step.state),
                "Round Key": _flat_hex(step.round_key) if step.round_key else "",
            }
            for idx, step in enumerate(steps)
        ]
    )


def sbox_frame() -> pd.DataFrame:
    df = pd.DataFrame([AES_SBOX[i:i + 16] for i in range(0, 256, 16)])
    return df.map(lambda x: f"{x:02X}")


def steps_workbook(steps: List[AESStep]) -> io.BytesIO:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        steps_frame(steps).to_excel(writer, sheet_name="Steps", index=False)
        sbox_frame().to_excel(writer, sheet_name="S-Box", header=False, index=False)
    output.seek(0)
    return output
