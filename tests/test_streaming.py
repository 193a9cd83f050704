from __future__ import annotations

import asyncio
import json
from typing import List

from nezarai.streaming import (
    STREAM_ERROR_MESSAGE,
    finish_part,
    frame_data_stream,
    text_part,
)


async def _collect(gen) -> List[str]:
  return [part async for part in gen]


async def _pieces(*items, fail: bool = False):
  for item in items:
    yield item
  if fail:
    raise RuntimeError("upstream closed")


def test_text_part_is_json_encoded():
  assert text_part('kata "kutip"\n') == '0:"kata \\"kutip\\"\\n"\n'
  assert text_part("héllo") == '0:"héllo"\n'


def test_finish_part_with_usage():
  line = finish_part("stop", {"promptTokens": 1})
  assert line.startswith("d:")
  assert json.loads(line[2:]) == {"finishReason": "stop", "usage": {"promptTokens": 1}}


def test_stream_framing():
  parts = asyncio.run(_collect(frame_data_stream(_pieces("Halo", "", " dunia"))))
  assert parts == ['0:"Halo"\n', '0:" dunia"\n', 'd:{"finishReason": "stop"}\n']


def test_error_mid_stream_becomes_error_part():
  parts = asyncio.run(_collect(frame_data_stream(_pieces("Halo", fail=True), label="test")))
  assert parts[0] == '0:"Halo"\n'
  assert parts[1] == f"3:{json.dumps(STREAM_ERROR_MESSAGE)}\n"
  assert json.loads(parts[2][2:]) == {"finishReason": "error"}
