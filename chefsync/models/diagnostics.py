"""Diagnostics report models."""

from pydantic import BaseModel
from typing import Literal, Optional


class TestResult(BaseModel):
    """One row of the diagnostics report."""

    __test__ = False

    name: str
    status: Literal["passed", "failed", "pending"]
    error: Optional[str] = None
