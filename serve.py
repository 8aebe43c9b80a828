"""Run the calendar API under uvicorn.

Run with:  python3 serve.py
"""

from __future__ import annotations

import os

import uvicorn

from api.main import app


def main() -> None:
    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "8000"))
    uvicorn.run(app, host=host, port=port, log_level="warning")


if __name__ == "__main__":
    main()
