"""
Session lifecycle state machine.

This module is the **single source of truth** for "what can the athlete
do with this session right now".  It is a pure function of
``(session, checkin, now)``: no I/O, no clock reads, no mutation.  The
API, the services and the maintenance sweep all go through it; nothing
re-derives lifecycle state inline.

States
------

========================  ===============================================
``awaiting_checkin``      before the check-in window opens
``checkin_available``     inside the check-in window, no check-in yet
``checkin_completed``     check-in submitted, session not started
``training_available``    training window reached, not marked in progress
``training_active``       training window reached and marked in progress
``reflection_available``  session ended recently, check-in exists
``completed``             terminal: status ``completed``
``absent``                terminal: status ``absent`` or ``cancelled``
``overdue``               session ended, still non-terminal, needs
                          manual resolution (absent / completed)
========================  ===============================================

Evaluation order (first match wins)
-----------------------------------

1. Terminal status.
2. ``now >= end``: ``reflection_available`` when a check-in exists and
   the session ended less than ``reflection_window`` ago, otherwise
   ``overdue``.
3. No check-in: ``checkin_available`` inside ``[start - 60min, end)``,
   else ``awaiting_checkin``.
4. Check-in and ``now < start``: ``checkin_completed``.
5. Inside ``[start, end)``: ``training_active`` if in progress, else
   ``training_available``.

``now == end`` counts as past; ``now == start - 60min`` counts as inside
the check-in window.  ``overdue`` is derived and never persisted.
"""

from __future__ import annotations

import datetime
import enum
from typing import Optional

from pydantic import BaseModel, Field

from app.engine.timeutils import SessionWindow, session_window, to_local
from app.models.checkin import PreTrainingCheckin
from app.models.training_session import SessionStatus, TrainingSession

# ======================================================================
# States
# ======================================================================


class SessionState(str, enum.Enum):
    AWAITING_CHECKIN = "awaiting_checkin"
    CHECKIN_AVAILABLE = "checkin_available"
    CHECKIN_COMPLETED = "checkin_completed"
    TRAINING_AVAILABLE = "training_available"
    TRAINING_ACTIVE = "training_active"
    REFLECTION_AVAILABLE = "reflection_available"
    COMPLETED = "completed"
    ABSENT = "absent"
    OVERDUE = "overdue"


# States in which the check-in may still be created or edited.
CHECKIN_EDITABLE_STATES: frozenset[SessionState] = frozenset(
    { SessionState.CHECKIN_AVAILABLE, SessionState.CHECKIN_COMPLETED })

# States from which training may be started (or resumed).
TRAINING_STATES: frozenset[SessionState] = frozenset(
    { SessionState.TRAINING_AVAILABLE, SessionState.TRAINING_ACTIVE })

# States from which the reflection completes the session.
COMPLETABLE_STATES: frozenset[SessionState] = frozenset(
    { SessionState.TRAINING_ACTIVE, SessionState.REFLECTION_AVAILABLE, SessionState.OVERDUE })


# ======================================================================
# Configuration
# ======================================================================


class StateMachineConfig(BaseModel):
    """Window sizes for the state computation."""

    checkin_window_minutes: int = Field(60, ge=0, le=24 * 60)
    reflection_window_hours: int = Field(24, ge=0, le=7 * 24)

    @classmethod
    def from_settings(cls, settings) -> "StateMachineConfig":
        return cls(checkin_window_minutes=settings.CHECKIN_WINDOW_MINUTES,
                   reflection_window_hours=settings.REFLECTION_WINDOW_HOURS, )


DEFAULT_CONFIG = StateMachineConfig()


# ======================================================================
# State computation
# ======================================================================


def _terminal_state(status: SessionStatus) -> Optional[SessionState]:
    if status == SessionStatus.COMPLETED:
        return SessionState.COMPLETED
    if status in (SessionStatus.ABSENT, SessionStatus.CANCELLED):
        return SessionState.ABSENT
    return None


def window_for(session: TrainingSession, timezone: Optional[str] = None,
               config: Optional[StateMachineConfig] = None, ) -> SessionWindow:
    cfg = config or DEFAULT_CONFIG
    return session_window(session.scheduled_date, session.start_time, session.end_time, timezone=timezone,
                          checkin_window_minutes=cfg.checkin_window_minutes, )


def session_state(session: TrainingSession, checkin: Optional[PreTrainingCheckin], now: datetime.datetime,
                  timezone: Optional[str] = None, config: Optional[StateMachineConfig] = None, ) -> SessionState:
    """Compute the lifecycle state of ``session`` at ``now``.

    Args:
        session: The session row (only status/date/times are read).
        checkin: The session's check-in, or ``None``.
        now: Current instant; aware values are converted to ``timezone``,
            naive values are taken as local wall-clock time.
        timezone: Athlete's IANA zone (UTC when missing or unknown).
        config: Optional :class:`StateMachineConfig` override.

    Returns:
        Exactly one :class:`SessionState`.
    """
    cfg = config or DEFAULT_CONFIG

    terminal = _terminal_state(SessionStatus(session.status))
    if terminal is not None:
        return terminal

    window = window_for(session, timezone, cfg)
    local_now = to_local(now, timezone)

    if window.has_ended(local_now):
        reflection_deadline = window.end + datetime.timedelta(hours=cfg.reflection_window_hours)
        if checkin is not None and local_now < reflection_deadline:
            return SessionState.REFLECTION_AVAILABLE
        return SessionState.OVERDUE

    if checkin is None:
        if window.checkin_window_contains(local_now):
            return SessionState.CHECKIN_AVAILABLE
        return SessionState.AWAITING_CHECKIN

    if local_now < window.start:
        return SessionState.CHECKIN_COMPLETED

    # Only [start, end) remains once the ended and pre-start cases are out
    if session.status == SessionStatus.IN_PROGRESS:
        return SessionState.TRAINING_ACTIVE
    return SessionState.TRAINING_AVAILABLE


# ======================================================================
# Action projection
# ======================================================================


class SessionAction(BaseModel):
    """What the UI offers for a session in a given state."""

    label: str
    target_action: str = Field(..., description="Action identifier the caller invokes, or 'none'")
    href: str
    description: str
    enabled: bool
    icon: str = Field(..., description="One of: check, rocket, eye, clock, x")
    variant: str = Field(..., description="One of: primary, secondary, disabled, warning")


# (label, target_action, route suffix, description, enabled, icon, variant)
_ACTIONS: dict[SessionState, tuple[str, str, Optional[str], str, bool, str, str]] = {
    SessionState.AWAITING_CHECKIN: ("Start Pre-Training Check-in", "checkin", "checkin",
                                    "Check-in available 1 hour before session", False, "clock", "disabled"),
    SessionState.CHECKIN_AVAILABLE: ("Start Pre-Training Check-in", "checkin", "checkin",
                                     "Complete your pre-training check-in", True, "check", "primary"),
    SessionState.CHECKIN_COMPLETED: ("Review Check-in", "checkin", "checkin",
                                     "Check-in completed. You can review or update before session starts.", True,
                                     "check", "secondary"),
    SessionState.TRAINING_AVAILABLE: ("Start Training", "start_training", "training", "Ready to start training",
                                      True, "rocket", "primary"),
    SessionState.TRAINING_ACTIVE: ("Continue Training", "start_training", "training", "Training in progress", True,
                                   "rocket", "primary"),
    SessionState.REFLECTION_AVAILABLE: ("Complete Reflection", "complete", "reflection",
                                        "Session complete - add your reflection", True, "check", "primary"),
    SessionState.COMPLETED: ("View Reflection", "view_reflection", "reflection", "Session completed", True, "eye",
                             "secondary"),
    SessionState.ABSENT: ("Marked Absent", "none", None, "This session was marked as absent", False, "x",
                          "disabled"),
    SessionState.OVERDUE: ("Resolve Overdue Session", "resolve_overdue", "resolve",
                           "Session time has passed - mark it absent or completed", True, "clock", "warning"),
}

# Every state maps to exactly one action.
_missing = set(SessionState) - set(_ACTIONS)
if _missing:
    raise RuntimeError(f"Session states without an action: {sorted(s.value for s in _missing)}")


def session_action(state: SessionState, session_id: Optional[int] = None) -> SessionAction:
    """Project a state onto the action the caller should render."""
    label, target, suffix, description, enabled, icon, variant = _ACTIONS[state]
    href = f"/sessions/{session_id}/{suffix}" if suffix and session_id is not None else "#"
    return SessionAction(label=label, target_action=target, href=href, description=description, enabled=enabled,
                         icon=icon, variant=variant, )


def describe(session: TrainingSession, checkin: Optional[PreTrainingCheckin], now: datetime.datetime,
             timezone: Optional[str] = None,
             config: Optional[StateMachineConfig] = None, ) -> tuple[SessionState, SessionAction]:
    """Return ``(state, action)`` for a session in one call."""
    state = session_state(session, checkin, now, timezone=timezone, config=config)
    return state, session_action(state, session.id)
