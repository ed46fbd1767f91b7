"""Domain Events related to API calls and resilience.

Examples include events for when calls are initiated, retried, fail, or succeed.
"""

from dataclasses import dataclass, field
import time
from typing import Optional

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a transport call is about to be made."""
    endpoint: str # e.g., 'query', 'fetch_bytes'
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a transport call succeeds."""
    endpoint: str
    latency_ms: float
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a call fails definitively (non-retryable or budget exhausted)."""
    endpoint: str
    error_type: str
    error_message: str
    attempts: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed call."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    retry_after: Optional[int] = None # Server-supplied hint, if any
    timestamp: float = field(default_factory=time.time)

@dataclass
class ResolvedFromCache(DomainEvent):
    """Event triggered when an identifier is resolved from the local cache."""
    cache_type: str
    lookup: str
    timestamp: float = field(default_factory=time.time)
