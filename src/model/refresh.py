from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Optional


@dataclass
class RefreshRunRecord:
    """Compact representation of a single refresh job event."""

    event: str
    recorded_at: datetime
    scheduled_at: Optional[datetime] = None
    duration_ms: Optional[float] = None
    message: Optional[str] = None


@dataclass
class RefreshStats:
    """Running counters for the background refresh job."""

    total_runs: int = 0
    total_success: int = 0
    total_error: int = 0
    total_missed: int = 0
    last_event: Optional[str] = None
    last_started_at: Optional[datetime] = None
    last_finished_at: Optional[datetime] = None
    last_duration_ms: Optional[float] = None
    last_error: Optional[str] = None
    history: Deque[RefreshRunRecord] = field(default_factory=deque)
