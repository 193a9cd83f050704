from __future__ import annotations

import math
import time
from threading import Lock
from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from .config import RATE_LIMIT_WINDOW_SECONDS


class RateDecision(BaseModel):
  allowed: bool
  wait_time: Optional[int] = None
  remaining: int


class SlidingWindowRateLimiter:
  """Per-key request timestamps over a fixed look-back window.

  A limit of -1 means unlimited. Timestamps are seconds; callers may pass
  ``now`` explicitly so the window can be driven from tests.
  """

  def __init__(self, window_seconds: float = RATE_LIMIT_WINDOW_SECONDS) -> None:
    self.window_seconds = window_seconds
    self._requests: Dict[str, List[float]] = {}
    self._lock = Lock()

  def _recent(self, key: str, now: float) -> List[float]:
    cutoff = now - self.window_seconds
    recent = [t for t in self._requests.get(key, []) if t > cutoff]
    if recent:
      self._requests[key] = recent
    else:
      self._requests.pop(key, None)
    return recent

  def _decide(self, recent: List[float], limit: int, now: float) -> RateDecision:
    if len(recent) >= limit:
      oldest = min(recent) if recent else now
      wait_time = math.ceil(oldest + self.window_seconds - now)
      return RateDecision(allowed=False, wait_time=max(wait_time, 1), remaining=0)
    return RateDecision(allowed=True, remaining=limit - len(recent))

  def check(self, key: str, limit: int, now: Optional[float] = None) -> RateDecision:
    now = time.time() if now is None else now
    if limit == -1:
      return RateDecision(allowed=True, remaining=-1)
    with self._lock:
      recent = self._recent(key, now)
    return self._decide(recent, limit, now)

  def record(self, key: str, now: Optional[float] = None) -> None:
    now = time.time() if now is None else now
    with self._lock:
      self._requests[key] = self._recent(key, now) + [now]

  def hit(self, key: str, limit: int, now: Optional[float] = None) -> RateDecision:
    """Check and, when allowed, record in one step."""
    now = time.time() if now is None else now
    if limit == -1:
      return RateDecision(allowed=True, remaining=-1)
    with self._lock:
      recent = self._recent(key, now)
      decision = self._decide(recent, limit, now)
      if decision.allowed:
        self._requests[key] = recent + [now]
        decision.remaining -= 1
    return decision

  def remaining(self, key: str, limit: int,
                now: Optional[float] = None) -> Union[int, str]:
    if limit == -1:
      return "unlimited"
    now = time.time() if now is None else now
    with self._lock:
      recent = self._recent(key, now)
    return max(0, limit - len(recent))

  def reset(self, key: str) -> None:
    with self._lock:
      self._requests.pop(key, None)


rate_limiter = SlidingWindowRateLimiter()
