import sqlalchemy
from sqlalchemy import Column, String
from sqlalchemy.orm import declarative_base
from uuid_extension import uuid7

Base = declarative_base()


def new_id() -> str:
    """Time-ordered uuid7, stored as text so sqlite and Postgres share one schema."""
    return str(uuid7())


class BaseModel(Base):
    """
    Common columns of the leads and workflows tables.
    Timestamps are set by the database; eager_defaults reloads them right after INSERT/UPDATE
    so async code never lazy-loads them.
    """

    __abstract__ = True
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String, primary_key=True, default=new_id, index=True)
    created_at = Column(
        sqlalchemy.DateTime(timezone=True), server_default=sqlalchemy.func.now(), nullable=False
    )
    updated_at = Column(
        sqlalchemy.DateTime(timezone=True),
        server_default=sqlalchemy.func.now(),
        onupdate=sqlalchemy.func.now(),
        nullable=False,
    )
