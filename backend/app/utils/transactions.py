from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


@contextmanager
def smart_transaction(session: Session) -> Iterator[Session]:
    """
    All-or-nothing unit of work on `session`.

    Sessions autobegin on the first query, so a caller that already read
    rows is usually inside a transaction: in that case the block's changes
    are committed (or rolled back) together with it. Otherwise a fresh
    transaction is opened with session.begin().

        with smart_transaction(db):
            for order in orders:
                order.export_status = "exported"
    """
    if not session.in_transaction():
        with session.begin():
            yield session
        return
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
