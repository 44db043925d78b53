"""Services module."""

from .generation import GenerationClient
from .reconciler import ScheduleReconciler
from .diagnostics import DiagnosticsRunner
from .session import ActionResult, ChefSession

__all__ = ["GenerationClient", "ScheduleReconciler", "DiagnosticsRunner", "ActionResult", "ChefSession"]
