"""
Articles, article comments and journal entries
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from haven_admin.core.error_handling import NotFoundError, ValidationFailed
from haven_admin.models.article import Article, ArticleCategory, ArticleComment, DEFAULT_READ_TIME
from haven_admin.models.journal import JournalEntry
from haven_admin.services.store import commit_or_raise

logger = logging.getLogger(__name__)


def parse_read_time(value: Any) -> int:
    """Minutes to read; missing or unparseable input falls back to the default."""
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        return DEFAULT_READ_TIME
    return minutes if minutes > 0 else DEFAULT_READ_TIME


def _article_category(category: Optional[str]) -> str:
    if not category:
        return ArticleCategory.MENTAL_HEALTH.value
    try:
        return ArticleCategory(category).value
    except ValueError:
        raise ValidationFailed(f"Unknown article category: {category}")


class ArticleService:

    @staticmethod
    def list_articles(db: Session, author: Optional[str] = None) -> List[Article]:
        query = db.query(Article)
        if author is not None:
            query = query.filter(Article.author == author)
        return query.order_by(Article.created_at.desc()).all()

    @staticmethod
    def get_article(db: Session, article_id: str, author: Optional[str] = None) -> Article:
        query = db.query(Article).filter(Article.id == article_id)
        if author is not None:
            query = query.filter(Article.author == author)
        article = query.first()
        if not article:
            raise NotFoundError("Article not found")
        return article

    @staticmethod
    def create_article(
        db: Session,
        title: str,
        author: Optional[str],
        content: Optional[str] = None,
        image_url: Optional[str] = None,
        category: Optional[str] = None,
        read_time: Any = None,
    ) -> Article:
        """
        Publish an article.

        Args:
            db: Database session
            title: Headline
            author: Byline text, or the author's profile id in the therapist area
            content: HTML body
            image_url: Cover image
            category: One of ArticleCategory, defaults to Mental Health
            read_time: Minutes, defaults to 5

        Returns:
            The new Article
        """
        if not title or not title.strip():
            raise ValidationFailed("Title is required.")
        article = Article(
            title=title,
            author=author,
            content=content,
            image_url=image_url,
            category=_article_category(category),
            read_time=parse_read_time(read_time),
        )
        db.add(article)
        commit_or_raise(db, "add article")
        db.refresh(article)
        logger.info(f"Created article {article.id}")
        return article

    @staticmethod
    def update_article(
        db: Session,
        article_id: str,
        title: str,
        author: Optional[str],
        content: Optional[str] = None,
        image_url: Optional[str] = None,
        category: Optional[str] = None,
        read_time: Any = None,
        owner: Optional[str] = None,
    ) -> Article:
        article = ArticleService.get_article(db, article_id, owner)
        if not title or not title.strip():
            raise ValidationFailed("Title is required.")
        article.title = title
        article.author = author
        article.content = content
        article.image_url = image_url
        article.category = _article_category(category)
        article.read_time = parse_read_time(read_time)
        commit_or_raise(db, "update article")
        db.refresh(article)
        return article

    @staticmethod
    def delete_article(db: Session, article_id: str, owner: Optional[str] = None) -> None:
        """Delete an article together with its comments."""
        article = ArticleService.get_article(db, article_id, owner)
        db.delete(article)
        commit_or_raise(db, "delete article")
        logger.info(f"Deleted article {article_id}")

    @staticmethod
    def list_comments(db: Session, article_id: str) -> List[ArticleComment]:
        return (
            db.query(ArticleComment)
            .filter(ArticleComment.article_id == article_id)
            .order_by(ArticleComment.created_at.asc())
            .all()
        )

    @staticmethod
    def delete_comment(db: Session, comment_id: str, article_id: Optional[str] = None) -> None:
        query = db.query(ArticleComment).filter(ArticleComment.id == comment_id)
        if article_id is not None:
            query = query.filter(ArticleComment.article_id == article_id)
        comment = query.first()
        if not comment:
            raise NotFoundError("Comment not found")
        db.delete(comment)
        commit_or_raise(db, "delete comment")


class JournalService:

    @staticmethod
    def list_entries(db: Session) -> List[JournalEntry]:
        return db.query(JournalEntry).order_by(JournalEntry.created_at.desc()).all()

    @staticmethod
    def delete_entry(db: Session, entry_id: str) -> None:
        entry = db.query(JournalEntry).filter(JournalEntry.id == entry_id).first()
        if not entry:
            raise NotFoundError("Journal entry not found")
        db.delete(entry)
        commit_or_raise(db, "delete journal entry")
        logger.info(f"Deleted journal entry {entry_id}")
