import os
import sys
import tempfile

BACKEND_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

# Must be set before app.core.config is imported anywhere.
_DB_DIR = tempfile.mkdtemp(prefix="reelhub-tests-")
os.environ.setdefault(
    "REELHUB_DATABASE_URL_OVERRIDE",
    f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'app.db')}",
)
os.environ.setdefault("REELHUB_SECRET_KEY", "test-secret")
os.environ.setdefault("REELHUB_LOG_LEVEL", "WARNING")
