from sqlalchemy import select

from nivo_server import bootstrap, config
from nivo_server.database import get_connection, users_table


def test_bootstrap_creates_demo_user_once(db):
    assert bootstrap.main(["--demo-user"]) == 0
    assert bootstrap.main(["--demo-user"]) == 0

    with get_connection() as conn:
        rows = conn.execute(
            select(users_table.c.id).where(users_table.c.username == config.DEMO_USERNAME)
        ).fetchall()
    assert len(rows) == 1
