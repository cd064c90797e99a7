from sqlalchemy import Column, String, Text

from app.platform.db.base import BaseModel


class Workflow(BaseModel):
    __tablename__ = "workflows"

    json_filename = Column(String(255), unique=True, nullable=False, index=True)
    screenshot_filename = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Workflow(json_filename='{self.json_filename}', name='{self.name}')>"
