from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker

from orderdesk.core.config import Settings


def build_engine(settings: Settings) -> Engine:
    engine_kwargs: dict[str, object] = {
        # Detect and recover from stale pooled connections.
        "pool_pre_ping": True,
    }

    if settings.database_url.lower().startswith("sqlite"):
        # Webhooks and redirects run on FastAPI's threadpool.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Tune SQLAlchemy pool for networked databases (e.g., Neon/Postgres).
        engine_kwargs.update(
            {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_max_overflow,
                "pool_timeout": settings.db_pool_timeout_seconds,
                "pool_recycle": settings.db_pool_recycle_seconds,
            }
        )

    return create_engine(settings.database_url, **engine_kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
