import importlib
import os
import sys

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings
from app.utils.log import get_logger

log = get_logger("app.db", "DB")

DATABASE_URL = settings.DATABASE_URL
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# every module declaring tables; imported before create_all
MODEL_MODULES = [
    "app.models.product",
    "app.models.order",
    "app.models.export_log",
]


def _running_under_pytest() -> bool:
    if any("pytest" in os.path.basename(a).lower() for a in sys.argv):
        return True
    return any(k.upper().startswith("PYTEST") for k in os.environ)


def init_db(reset: bool = None):
    """
    Initialize DB schema.

    Tables are dropped and recreated when `reset` is true, when RESET_DB is
    set to 1/true/yes, or when running under pytest so every test module
    starts from a clean database. Otherwise existing tables are kept.
    """
    if reset is None:
        env_reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")
        reset = env_reset or _running_under_pytest()

    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.info("resetting database tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    log.debug(f"schema ready ({len(Base.metadata.tables)} tables)")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
