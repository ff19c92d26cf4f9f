import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
TESTS = Path(__file__).resolve().parent

# Ensure the project sources and the shared test helpers are importable.
for path in (SRC, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# Qt tests run without a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
