import os
import tempfile

# must be set before app.config is imported by any test module
_tmp = tempfile.mkdtemp(prefix="export-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_tmp, 'test.db')}")
os.environ.setdefault("ARCHIVE_DIR", os.path.join(_tmp, "archives"))
os.environ.setdefault("EXPORT_LOCK_FILE", os.path.join(_tmp, "export.lock"))
os.environ.setdefault("EXPORT_SCHEDULE_ENABLED", "false")
os.environ.setdefault("TRANSPORT_BACKEND", "mock")
os.environ.setdefault("TRANSPORT_RETRY_DELAY_SECONDS", "0")
