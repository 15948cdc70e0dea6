import psycopg2
from config import settings

def get_conn():
    """Direct Postgres connection, used only for applying the schema."""
    return psycopg2.connect(
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        user=settings.DB_USER,
        password=settings.DB_PASSWORD,
        dbname=settings.DB_NAME,
        sslmode=settings.DB_SSLMODE
    )
