"""
Community models: Forum -> Thread -> Comment
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from haven_admin.database import Base
from haven_admin.models.common import generate_uuid, utcnow


class Forum(Base):
    __tablename__ = "forums"

    id = Column(String, primary_key=True, default=generate_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    threads = relationship(
        "Thread",
        back_populates="forum",
        cascade="all, delete-orphan",
        order_by="Thread.created_at.desc()",
    )


class Thread(Base):
    __tablename__ = "threads"

    id = Column(String, primary_key=True, default=generate_uuid)
    forum_id = Column(String, ForeignKey("forums.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    original_post = Column(Text, nullable=True)
    author_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow)

    forum = relationship("Forum", back_populates="threads")
    comments = relationship(
        "Comment",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )
    author = relationship(
        "Profile",
        primaryjoin="foreign(Thread.author_id) == Profile.id",
        viewonly=True,
    )


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String, primary_key=True, default=generate_uuid)
    thread_id = Column(String, ForeignKey("threads.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String, nullable=True, index=True)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=utcnow)

    thread = relationship("Thread", back_populates="comments")
    author = relationship(
        "Profile",
        primaryjoin="foreign(Comment.author_id) == Profile.id",
        viewonly=True,
    )
