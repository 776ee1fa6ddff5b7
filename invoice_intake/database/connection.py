from psycopg_pool import AsyncConnectionPool

from invoice_intake.config.settings import Settings


def build_conninfo(settings: Settings) -> str:
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


async def open_pool(settings: Settings, timeout: float = 10.0) -> AsyncConnectionPool:
    """Open a connection pool from settings. Caller owns closing it.

    Waits until the first connection is up so a bad DSN fails at startup.
    """
    pool = AsyncConnectionPool(
        build_conninfo(settings), min_size=1, max_size=10, open=False
    )
    await pool.open(wait=True, timeout=timeout)
    return pool
