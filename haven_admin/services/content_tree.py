"""
Content tree management

Module -> Lesson -> LessonStep and Forum -> Thread -> Comment. Children are
read in ``order`` (lessons, steps) or creation time (threads newest first,
comments oldest first). Deleting a parent removes its whole subtree in the
same transaction. Orders are never renumbered after a delete.
"""

import enum
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from haven_admin.config import settings
from haven_admin.core.error_handling import NotFoundError, ValidationFailed
from haven_admin.models.community import Comment, Forum, Thread
from haven_admin.models.content import Lesson, LessonStep, Module, ModuleCategory, StepType
from haven_admin.services.store import commit_or_raise

logger = logging.getLogger(__name__)


class OrderPolicy(str, enum.Enum):
    """How a new child's ``order`` is chosen when the editor does not give one"""
    APPEND_COUNT = "append_count"   # number of siblings + 1; may repeat a value after a delete
    MAX_PLUS_ONE = "max_plus_one"   # highest sibling order + 1

    @classmethod
    def configured(cls) -> "OrderPolicy":
        return cls(settings.CONTENT_ORDER_POLICY)


def next_order(db: Session, model, parent_column, parent_id: str, policy: Optional[OrderPolicy] = None) -> int:
    """
    Order value for a child appended under ``parent_id``.

    Args:
        db: Database session
        model: Lesson or LessonStep
        parent_column: The model's foreign key column to its parent
        parent_id: Parent id
        policy: Overrides CONTENT_ORDER_POLICY
    """
    policy = policy or OrderPolicy.configured()
    if policy == OrderPolicy.MAX_PLUS_ONE:
        highest = db.query(func.max(model.order)).filter(parent_column == parent_id).scalar()
        return (highest or 0) + 1
    return db.query(model).filter(parent_column == parent_id).count() + 1


def _module_category(category: Optional[str]) -> str:
    if not category:
        return ModuleCategory.MENTAL_HEALTH.value
    try:
        return ModuleCategory(category).value
    except ValueError:
        raise ValidationFailed(f"Unknown module category: {category}")


def _step_type(step_type: Optional[str]) -> StepType:
    try:
        return StepType.parse(step_type or StepType.TEXT.value)
    except ValueError:
        raise ValidationFailed(f"Unknown step type: {step_type}")


def _required(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationFailed(f"{label} is required.")
    return value


class ContentTreeService:

    # --- Modules ---

    @staticmethod
    def list_modules(db: Session, author_id: Optional[str] = None) -> List[Module]:
        query = db.query(Module)
        if author_id is not None:
            query = query.filter(Module.author_id == author_id)
        return query.order_by(Module.created_at.desc()).all()

    @staticmethod
    def get_module(db: Session, module_id: str, author_id: Optional[str] = None) -> Module:
        query = db.query(Module).filter(Module.id == module_id)
        if author_id is not None:
            query = query.filter(Module.author_id == author_id)
        module = query.first()
        if not module:
            raise NotFoundError("Module not found")
        return module

    @staticmethod
    def create_module(
        db: Session,
        title: str,
        image_url: str,
        subtitle: Optional[str] = None,
        category: Optional[str] = None,
        author_id: Optional[str] = None,
    ) -> Module:
        module = Module(
            title=_required(title, "Title"),
            subtitle=subtitle,
            image_url=_required(image_url, "Image URL"),
            category=_module_category(category),
            author_id=author_id,
        )
        db.add(module)
        commit_or_raise(db, "create module")
        db.refresh(module)
        logger.info(f"Created module {module.id}")
        return module

    @staticmethod
    def update_module(
        db: Session,
        module_id: str,
        title: str,
        image_url: str,
        subtitle: Optional[str] = None,
        category: Optional[str] = None,
        author_id: Optional[str] = None,
    ) -> Module:
        module = ContentTreeService.get_module(db, module_id, author_id)
        module.title = _required(title, "Title")
        module.subtitle = subtitle
        module.image_url = _required(image_url, "Image URL")
        module.category = _module_category(category)
        commit_or_raise(db, "update module")
        db.refresh(module)
        return module

    @staticmethod
    def delete_module(db: Session, module_id: str, author_id: Optional[str] = None) -> None:
        """Delete a module with all its lessons and their steps."""
        module = ContentTreeService.get_module(db, module_id, author_id)
        lesson_count = len(module.lessons)
        db.delete(module)
        commit_or_raise(db, "delete module")
        logger.info(f"Deleted module {module_id} with {lesson_count} lessons")

    # --- Lessons ---

    @staticmethod
    def list_lessons(db: Session, module_id: str) -> List[Lesson]:
        return (
            db.query(Lesson)
            .filter(Lesson.module_id == module_id)
            .order_by(Lesson.order.asc())
            .all()
        )

    @staticmethod
    def get_lesson(db: Session, lesson_id: str, module_id: Optional[str] = None) -> Lesson:
        query = db.query(Lesson).filter(Lesson.id == lesson_id)
        if module_id is not None:
            query = query.filter(Lesson.module_id == module_id)
        lesson = query.first()
        if not lesson:
            raise NotFoundError("Lesson not found")
        return lesson

    @staticmethod
    def create_lesson(
        db: Session,
        module_id: str,
        title: str,
        order: Optional[int] = None,
        policy: Optional[OrderPolicy] = None,
    ) -> Lesson:
        """
        Append a lesson to a module.

        Args:
            db: Database session
            module_id: Parent module
            title: Lesson title
            order: Explicit position from the editor; assigned by policy when None
            policy: Ordering policy override

        Returns:
            The new Lesson
        """
        ContentTreeService.get_module(db, module_id)
        if order is None:
            order = next_order(db, Lesson, Lesson.module_id, module_id, policy)

        lesson = Lesson(module_id=module_id, title=_required(title, "Title"), order=order)
        db.add(lesson)
        commit_or_raise(db, "create lesson")
        db.refresh(lesson)
        logger.info(f"Created lesson {lesson.id} at order {order} in module {module_id}")
        return lesson

    @staticmethod
    def update_lesson(
        db: Session, lesson_id: str, title: str, order: int, module_id: Optional[str] = None
    ) -> Lesson:
        lesson = ContentTreeService.get_lesson(db, lesson_id, module_id)
        lesson.title = _required(title, "Title")
        lesson.order = order
        commit_or_raise(db, "update lesson")
        db.refresh(lesson)
        return lesson

    @staticmethod
    def delete_lesson(db: Session, lesson_id: str, module_id: Optional[str] = None) -> None:
        lesson = ContentTreeService.get_lesson(db, lesson_id, module_id)
        db.delete(lesson)
        commit_or_raise(db, "delete lesson")
        logger.info(f"Deleted lesson {lesson_id}")

    # --- Steps ---

    @staticmethod
    def list_steps(db: Session, lesson_id: str) -> List[LessonStep]:
        return (
            db.query(LessonStep)
            .filter(LessonStep.lesson_id == lesson_id)
            .order_by(LessonStep.order.asc())
            .all()
        )

    @staticmethod
    def get_step(db: Session, step_id: str, lesson_id: Optional[str] = None) -> LessonStep:
        query = db.query(LessonStep).filter(LessonStep.id == step_id)
        if lesson_id is not None:
            query = query.filter(LessonStep.lesson_id == lesson_id)
        step = query.first()
        if not step:
            raise NotFoundError("Step not found")
        return step

    @staticmethod
    def create_step(
        db: Session,
        lesson_id: str,
        step_type: str,
        content: Optional[str] = None,
        prompt_question: Optional[str] = None,
        order: Optional[int] = None,
        policy: Optional[OrderPolicy] = None,
    ) -> LessonStep:
        ContentTreeService.get_lesson(db, lesson_id)
        parsed_type = _step_type(step_type)
        if order is None:
            order = next_order(db, LessonStep, LessonStep.lesson_id, lesson_id, policy)

        step = LessonStep(
            lesson_id=lesson_id,
            order=order,
            type=parsed_type.value,
            content=content,
            prompt_question=prompt_question if parsed_type.takes_prompt else None,
        )
        db.add(step)
        commit_or_raise(db, "create step")
        db.refresh(step)
        logger.info(f"Created {parsed_type.value} step {step.id} at order {order} in lesson {lesson_id}")
        return step

    @staticmethod
    def update_step(
        db: Session,
        step_id: str,
        step_type: str,
        order: int,
        content: Optional[str] = None,
        prompt_question: Optional[str] = None,
        lesson_id: Optional[str] = None,
    ) -> LessonStep:
        step = ContentTreeService.get_step(db, step_id, lesson_id)
        parsed_type = _step_type(step_type)
        step.type = parsed_type.value
        step.order = order
        step.content = content
        step.prompt_question = prompt_question if parsed_type.takes_prompt else None
        commit_or_raise(db, "update step")
        db.refresh(step)
        return step

    @staticmethod
    def delete_step(db: Session, step_id: str, lesson_id: Optional[str] = None) -> None:
        step = ContentTreeService.get_step(db, step_id, lesson_id)
        db.delete(step)
        commit_or_raise(db, "delete step")

    # --- Forums ---

    @staticmethod
    def list_forums(db: Session) -> List[Forum]:
        return db.query(Forum).order_by(Forum.created_at.asc()).all()

    @staticmethod
    def get_forum(db: Session, forum_id: str) -> Forum:
        forum = db.query(Forum).filter(Forum.id == forum_id).first()
        if not forum:
            raise NotFoundError("Forum not found")
        return forum

    @staticmethod
    def create_forum(db: Session, title: str, description: Optional[str] = None, icon: Optional[str] = None) -> Forum:
        forum = Forum(title=_required(title, "Title"), description=description, icon=icon)
        db.add(forum)
        commit_or_raise(db, "create forum")
        db.refresh(forum)
        logger.info(f"Created forum {forum.id}")
        return forum

    @staticmethod
    def update_forum(
        db: Session,
        forum_id: str,
        title: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Forum:
        forum = ContentTreeService.get_forum(db, forum_id)
        forum.title = _required(title, "Title")
        forum.description = description
        forum.icon = icon
        commit_or_raise(db, "update forum")
        db.refresh(forum)
        return forum

    @staticmethod
    def delete_forum(db: Session, forum_id: str) -> None:
        """Delete a forum with all its threads and their comments."""
        forum = ContentTreeService.get_forum(db, forum_id)
        db.delete(forum)
        commit_or_raise(db, "delete forum")
        logger.info(f"Deleted forum {forum_id}")

    # --- Threads ---

    @staticmethod
    def list_threads(db: Session, forum_id: str) -> List[Thread]:
        return (
            db.query(Thread)
            .filter(Thread.forum_id == forum_id)
            .order_by(Thread.created_at.desc())
            .all()
        )

    @staticmethod
    def get_thread(db: Session, thread_id: str, forum_id: Optional[str] = None) -> Thread:
        query = db.query(Thread).filter(Thread.id == thread_id)
        if forum_id is not None:
            query = query.filter(Thread.forum_id == forum_id)
        thread = query.first()
        if not thread:
            raise NotFoundError("Thread not found")
        return thread

    @staticmethod
    def delete_thread(db: Session, thread_id: str, forum_id: Optional[str] = None) -> None:
        thread = ContentTreeService.get_thread(db, thread_id, forum_id)
        db.delete(thread)
        commit_or_raise(db, "delete thread")
        logger.info(f"Deleted thread {thread_id}")

    # --- Comments ---

    @staticmethod
    def list_comments(db: Session, thread_id: str) -> List[Comment]:
        return (
            db.query(Comment)
            .filter(Comment.thread_id == thread_id)
            .order_by(Comment.created_at.asc())
            .all()
        )

    @staticmethod
    def add_comment(db: Session, thread_id: str, author_id: str, content: str) -> Comment:
        ContentTreeService.get_thread(db, thread_id)
        comment = Comment(thread_id=thread_id, author_id=author_id, content=_required(content, "Reply"))
        db.add(comment)
        commit_or_raise(db, "post reply")
        db.refresh(comment)
        return comment

    @staticmethod
    def delete_comment(db: Session, comment_id: str, thread_id: Optional[str] = None) -> None:
        query = db.query(Comment).filter(Comment.id == comment_id)
        if thread_id is not None:
            query = query.filter(Comment.thread_id == thread_id)
        comment = query.first()
        if not comment:
            raise NotFoundError("Comment not found")
        db.delete(comment)
        commit_or_raise(db, "delete comment")
