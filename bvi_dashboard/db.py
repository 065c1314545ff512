import structlog
from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from .errors import DatabaseNotConnected
from .settings import Settings

log = structlog.get_logger(__name__)


class Database:
    """
    Owns the engine for the posts database.
    Built once per process, connected before serving and closed on shutdown.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self._engine_kwargs = engine_kwargs
        self.engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        url = settings.resolved_database_url
        kwargs = {}
        if make_url(url).get_backend_name() == "postgresql":
            kwargs["connect_args"] = {"options": f"-c statement_timeout={settings.query_timeout_ms}"}
        return cls(url, **kwargs)

    @property
    def connected(self) -> bool:
        return self.engine is not None

    @property
    def safe_url(self) -> str:
        return make_url(self.url).render_as_string(hide_password=True)

    def connect(self) -> None:
        if self.engine is not None:
            return

        engine = create_engine(self.url, pool_pre_ping=True, **self._engine_kwargs)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            engine.dispose()
            raise

        self.engine = engine
        self._sessionmaker = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        log.info("database_connected", url=self.safe_url)

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._sessionmaker = None
        log.info("database_closed")

    def session(self) -> Session:
        if self._sessionmaker is None:
            raise DatabaseNotConnected("Database not connected. Call connect() first.")
        return self._sessionmaker()


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
