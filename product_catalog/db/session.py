from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from product_catalog.core.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite 默认不执行外键级联
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """根据连接串创建引擎（SQLite 不支持连接池参数）"""
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            **kwargs,
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=1800,
        **kwargs,
    )


engine = build_engine(settings.database_url, echo=settings.SQL_ECHO)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)
