from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from haven_admin.database import Base
from haven_admin.models.common import generate_uuid, utcnow
import enum


class ArticleCategory(str, enum.Enum):
    MENTAL_HEALTH = "Mental Health"
    FAITH_AND_SPIRIT = "Faith & Spirit"
    RELATIONSHIPS = "Relationships"
    MINDFULNESS = "Mindfulness"
    PERSONAL_STORIES = "Personal Stories"


DEFAULT_READ_TIME = 5


class Article(Base):
    __tablename__ = "articles"

    id = Column(String, primary_key=True, default=generate_uuid)
    title = Column(String, nullable=False)
    # Free-text byline from the staff editor, or the author's profile id
    author = Column(String, nullable=True, index=True)
    image_url = Column(String, nullable=True)
    category = Column(String, nullable=False, default=ArticleCategory.MENTAL_HEALTH.value)
    read_time = Column(Integer, nullable=False, default=DEFAULT_READ_TIME)
    content = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    comments = relationship(
        "ArticleComment",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="ArticleComment.created_at",
    )


class ArticleComment(Base):
    __tablename__ = "article_comments"

    id = Column(String, primary_key=True, default=generate_uuid)
    article_id = Column(String, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String, nullable=True, index=True)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=utcnow)

    article = relationship("Article", back_populates="comments")
    author = relationship(
        "Profile",
        primaryjoin="foreign(ArticleComment.author_id) == Profile.id",
        viewonly=True,
    )
