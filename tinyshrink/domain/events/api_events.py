"""Domain Events related to API calls and resilience.

Emitted by the retry orchestrator when calls are deferred, retried, fail,
or succeed.
"""

from dataclasses import dataclass, field
import time
from typing import Optional

@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an attempt is about to be sent."""
    endpoint: str
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an API call succeeds."""
    endpoint: str
    latency_ms: float
    usage_counter: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively (fatal or after retries)."""
    endpoint: str
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when an API call is deferred due to rate limiting."""
    endpoint: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed attempt."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    reason: str = ""
    timestamp: float = field(default_factory=time.time)
