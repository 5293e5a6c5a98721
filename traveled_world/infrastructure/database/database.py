from sqlalchemy.future import Engine
from sqlmodel import SQLModel, create_engine

from ...config import settings


def _get_engine(database_url: str | None = None) -> Engine:
    database_url = database_url or settings.database_url
    connect_args: dict[str, bool] = {}
    engine_kwargs: dict[str, int | bool] = {}

    if database_url.startswith("sqlite"):
        # The API runs commands on the event loop thread, other threads may
        # still touch the connection during shutdown
        connect_args["check_same_thread"] = False
    elif "postgresql" in database_url:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 5

    return create_engine(
        database_url,
        connect_args=connect_args,
        **engine_kwargs,
    )


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


_engine: Engine | None = None


def get_main_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _get_engine()
    return _engine
