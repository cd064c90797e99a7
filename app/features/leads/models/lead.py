from sqlalchemy import Column, String

from app.platform.db.base import BaseModel


class Lead(BaseModel):
    __tablename__ = "leads"

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, nullable=True, index=True)
    statut = Column(String(255), nullable=True)
    objectif = Column(String(255), nullable=True)
    ca_mensuel = Column(String(100), nullable=True)
    interesse_saas = Column(String(255), nullable=True)
    access_token = Column(String(64), unique=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Lead(id='{self.id}', email='{self.email}')>"
