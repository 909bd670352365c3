"""
Relational store behind the table API

One shared SQLAlchemy engine (bounded connection pool) is created at import
time from the environment. Only the tables in TableName are reachable, each
through statements built here once; request input is only ever bound as a
parameter, never spliced into SQL.
"""
import logging
import os
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    bindparam,
    create_engine,
    insert,
    select,
    text,
)
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

logger = logging.getLogger(__name__)

POOL_SIZE = 10
POOL_RECYCLE_SECONDS = 30
MAX_ROW_ID = 2**31 - 1


class TableName(str, Enum):
    USERS = "users"
    PRODUCTS = "products"
    ORDERS = "orders"
    CATEGORIES = "categories"


metadata = MetaData()

users = Table(
    "users", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True)),
)

categories = Table(
    "categories", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("slug", String(255)),
)

products = Table(
    "products", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("price", Float, nullable=False),
    Column("image_url", String(1024)),
    Column("category", String(255)),
    Column("stock", Integer, default=0),
    Column("rating", Float),
)

orders = Table(
    "orders", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id")),
    Column("total", Float, nullable=False),
    Column("status", String(32), nullable=False, default="pending"),
    Column("created_at", DateTime(timezone=True)),
)

TABLES = {
    TableName.USERS: users,
    TableName.PRODUCTS: products,
    TableName.ORDERS: orders,
    TableName.CATEGORIES: categories,
}

LIST_STATEMENTS = {name: select(t).order_by(t.c.id) for name, t in TABLES.items()}
GET_BY_ID_STATEMENTS = {
    name: select(t).where(t.c.id == bindparam("id", type_=Integer)) for name, t in TABLES.items()
}
INSERT_USER = insert(users)


def build_database_url():
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    server = os.getenv("DB_SERVER")
    if server:
        return URL.create(
            "mssql+pyodbc",
            username=os.getenv("DB_USER"),
            password=os.getenv("DB_PASSWORD"),
            host=server,
            database=os.getenv("DB_NAME", "service_business"),
            query={
                "driver": os.getenv("DB_DRIVER", "ODBC Driver 18 for SQL Server"),
                "Encrypt": "yes" if os.getenv("DB_ENCRYPT") == "true" else "no",
                "TrustServerCertificate": "yes" if os.getenv("DB_TRUST_SERVER_CERTIFICATE") == "true" else "no",
            },
        )
    return "sqlite:///./storefront.db"


def create_db_engine(url=None) -> Engine:
    url = url or build_database_url()
    kwargs: Dict[str, Any] = {"pool_pre_ping": True, "pool_recycle": POOL_RECYCLE_SECONDS}
    if str(url).startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(pool_size=POOL_SIZE, max_overflow=0)
    return create_engine(url, **kwargs)


class Database:
    def __init__(self, engine: Optional[Engine]):
        self.engine = engine

    @classmethod
    def from_env(cls) -> "Database":
        try:
            return cls(create_db_engine())
        except (ArgumentError, ImportError):
            logger.exception("Could not configure the database engine")
            return cls(None)

    def ping(self) -> bool:
        if self.engine is None:
            return False
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def fetch_all(self, table: TableName) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.execute(LIST_STATEMENTS[table])
            return [dict(row._mapping) for row in result]

    def fetch_one(self, table: TableName, row_id: int) -> Optional[Dict[str, Any]]:
        if row_id > MAX_ROW_ID:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(GET_BY_ID_STATEMENTS[table], {"id": row_id}).first()
            return dict(row._mapping) if row is not None else None

    def insert_user(self, name: str, email: str) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                INSERT_USER,
                {"name": name, "email": email, "created_at": datetime.now(timezone.utc)},
            )
            return result.inserted_primary_key[0]

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


db = Database.from_env()


def get_db() -> Database:
    return db
