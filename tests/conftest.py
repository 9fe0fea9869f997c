import os
import tempfile

# Keep the import-time data directory (logs, sqlite) out of /app/data.
os.environ.setdefault("DHC_DATA_DIR", tempfile.mkdtemp(prefix="dhc-casestatus-tests-"))
