from typing import Optional

import pytest
from pydantic import BaseModel
from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from sacrud import CrudController, ModelSchema, RequestContext, SimpleAdapter

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("user_id", String, primary_key=True),
    Column("name", String, nullable=True),
    # booleans are stored as "1"/"0"
    Column("active", String(1), nullable=True),
    Column("inserted_at", String, nullable=True),
    Column("updated_at", String, nullable=True),
)

things = Table(
    "things",
    metadata,
    Column("thing_id", String, primary_key=True),
    Column("user_id", String, nullable=False),
    Column("name", String, nullable=False),
    Column("position", Integer, nullable=True),
)

flags = Table(
    "flags",
    metadata,
    Column("flag_id", String, primary_key=True),
    Column("active", Boolean, nullable=True),
)


class UserSchema(BaseModel):
    user_id: str
    name: Optional[str]
    active: bool


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def adapter():
    return SimpleAdapter()


@pytest.fixture
def crud(adapter):
    return CrudController({"users": ModelSchema("users", users, UserSchema), "things": things, "flags": flags}, adapter)


@pytest.fixture
def make_context(session):
    def factory(params=None, body=None, state=None):
        return RequestContext(db=session, params=params or {}, body=body, state=state or {})

    return factory


@pytest.fixture
def seed(session):
    def insert_rows(table, *rows):
        session.execute(table.insert(), list(rows))
        session.commit()

    return insert_rows
