"""Create the schema and the default user.

Run with ``python seed.py``. Existing rows are left untouched.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

from database import init_db, session_scope
from models import User

logger = logging.getLogger(__name__)

DEFAULT_USER = {
    "id": 123123,
    "first_name": "mosh",
    "last_name": "israeli",
    "birthday": date(1990, 1, 1),
}


def seed_database(session: Session) -> bool:
    if session.get(User, DEFAULT_USER["id"]) is not None:
        return False
    session.add(User(**DEFAULT_USER))
    session.flush()
    return True


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    init_db()
    with session_scope() as session:
        created = seed_database(session)
    logger.info(f"seed: user_id={DEFAULT_USER['id']} created={created}")


if __name__ == "__main__":
    main()
