"""Session engine — materializer, lifecycle state machine, maintenance sweep, analytics."""

from app.engine.analytics import AnalyticsConfig, compute_progress
from app.engine.materializer import materialize, materialize_horizon, persist
from app.engine.state_machine import SessionState, StateMachineConfig, describe, session_action, session_state
from app.engine.sweep import MaintenanceSweep, SweepReport

__all__ = [
    "AnalyticsConfig",
    "compute_progress",
    "materialize",
    "materialize_horizon",
    "persist",
    "SessionState",
    "StateMachineConfig",
    "describe",
    "session_action",
    "session_state",
    "MaintenanceSweep",
    "SweepReport",
]
