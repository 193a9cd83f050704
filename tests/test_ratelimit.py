from __future__ import annotations

import threading

from nezarai.ratelimit import SlidingWindowRateLimiter


def test_blocks_after_limit_and_reports_wait():
  limiter = SlidingWindowRateLimiter(window_seconds=60)
  for i in range(3):
    assert limiter.hit("k", 3, now=100.0 + i).allowed
  decision = limiter.check("k", 3, now=110.0)
  assert not decision.allowed
  assert decision.remaining == 0
  # oldest request at 100 leaves the window at 160
  assert decision.wait_time == 50


def test_window_slides():
  limiter = SlidingWindowRateLimiter(window_seconds=60)
  limiter.record("k", now=0.0)
  limiter.record("k", now=30.0)
  assert limiter.remaining("k", 2, now=59.0) == 0
  assert limiter.remaining("k", 2, now=61.0) == 1
  assert limiter.check("k", 2, now=61.0).allowed


def test_unlimited():
  limiter = SlidingWindowRateLimiter()
  for _ in range(100):
    decision = limiter.hit("k", -1, now=1.0)
  assert decision.allowed
  assert decision.remaining == -1
  assert limiter.remaining("k", -1) == "unlimited"


def test_hit_counts_down_and_reset_clears():
  limiter = SlidingWindowRateLimiter()
  assert limiter.hit("k", 10, now=5.0).remaining == 9
  assert limiter.hit("k", 10, now=6.0).remaining == 8
  limiter.reset("k")
  assert limiter.remaining("k", 10, now=7.0) == 10


def test_keys_are_independent():
  limiter = SlidingWindowRateLimiter()
  limiter.hit("a", 1, now=1.0)
  assert not limiter.check("a", 1, now=2.0).allowed
  assert limiter.check("b", 1, now=2.0).allowed


def test_idle_keys_are_evicted():
  limiter = SlidingWindowRateLimiter(window_seconds=60)
  limiter.hit("ip:10.0.0.1", 10, now=0.0)
  assert limiter.remaining("ip:10.0.0.1", 10, now=120.0) == 10
  assert "ip:10.0.0.1" not in limiter._requests


def test_concurrent_hits_respect_limit():
  limiter = SlidingWindowRateLimiter()
  allowed = []

  def _worker():
    for _ in range(20):
      allowed.append(limiter.hit("k", 10, now=1.0).allowed)

  threads = [threading.Thread(target=_worker) for _ in range(8)]
  for t in threads:
    t.start()
  for t in threads:
    t.join()
  assert allowed.count(True) == 10
  assert len(limiter._requests["k"]) == 10
