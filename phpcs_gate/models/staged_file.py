"""
Staged File Model
Pydantic model for one entry of `git diff --cached --name-status`.
"""
from pydantic import BaseModel, ConfigDict


class StagedFileEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    change_status: str   # A, M, R100, C75, T, U ... (D never reaches callers)
