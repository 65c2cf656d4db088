"""
Fix Outcome Model
=================
Pydantic model tracking the outcome of one auto-fix attempt on a single file.

Fields:
    path        — the file the fixer was pointed at
    attempted   — False only when the pre-check found nothing, in which case
                  the fixer was never invoked
    changed     — True iff the file content differs before/after the fixer
    remaining   — single-file BatchReport taken after fixing
    failure     — InvocationError description if the fixer itself failed
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .violation import BatchReport


class FixOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    attempted: bool = False
    changed: bool = False
    remaining: BatchReport
    failure: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.failure is not None
