from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship
from haven_admin.database import Base
from haven_admin.models.common import generate_uuid, utcnow


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id = Column(String, primary_key=True, default=generate_uuid)
    author_id = Column(String, nullable=True, index=True)
    title = Column(String, nullable=True)
    content = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=utcnow)

    author = relationship(
        "Profile",
        primaryjoin="foreign(JournalEntry.author_id) == Profile.id",
        viewonly=True,
    )
