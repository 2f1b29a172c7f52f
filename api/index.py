"""ASGI entrypoint for hosts that import the status API by file path."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from web.app import app  # noqa: E402

handler = app
