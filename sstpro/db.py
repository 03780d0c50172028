# sstpro/db.py
from contextlib import contextmanager
from importlib import resources
from psycopg2.pool import SimpleConnectionPool
import psycopg2.extras
import structlog

log = structlog.get_logger(__name__)

_pool: SimpleConnectionPool | None = None

def init_db(db_cfg: dict) -> None:
    """
    Inicializa o pool de conexões. Chamado uma vez pelo create_app().

    db_cfg vem do Config.DB_CFG (host, port, dbname, user, password, sslmode...).
    """
    global _pool
    if _pool is not None:
        return

    _pool = SimpleConnectionPool(
        minconn=1,
        maxconn=10,
        cursor_factory=psycopg2.extras.DictCursor,  # rows acessíveis por nome
        **db_cfg,
    )
    log.info("db.pool_ready", host=db_cfg.get("host"), dbname=db_cfg.get("dbname"))

def _ensure_pool() -> None:
    if _pool is None:
        raise RuntimeError(
            "DB pool ainda não inicializado. "
            "Garanta que init_db(app.config['DB_CFG']) foi chamado no create_app()."
        )

@contextmanager
def get_conn():
    """
    Uso:
      with get_conn() as conn, conn.cursor() as cur:
          cur.execute("SELECT 1")
    Faz commit no sucesso e rollback em caso de exceção.
    """
    _ensure_pool()
    conn = _pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        log.exception("db.rollback")
        raise
    finally:
        _pool.putconn(conn)

def apply_schema() -> None:
    """Executa sstpro/schema.sql (idempotente: CREATE ... IF NOT EXISTS)."""
    sql = resources.files("sstpro").joinpath("schema.sql").read_text(encoding="utf-8")
    with get_conn() as conn, conn.cursor() as cur:
        cur.execute(sql)