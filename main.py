from __future__ import annotations

import os

import uvicorn

from nezarai.app import app


if __name__ == "__main__":
  uvicorn.run(
      "nezarai.app:app",
      host=os.getenv("HOST", "0.0.0.0"),
      port=int(os.getenv("PORT", "8000")),
      reload=os.getenv("RELOAD", "0") == "1",
  )
