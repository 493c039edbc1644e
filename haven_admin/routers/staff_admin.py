"""
Staff admin dashboard (/admin)

Global content management: articles and their comments, learning modules
with lessons and steps, community forums, and journal moderation. The area
gate only requires a valid session.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from haven_admin.core.error_handling import DetailNotFound, NotFoundError
from haven_admin.database import get_db
from haven_admin.dependencies import staff_gate
from haven_admin.schemas.content_schemas import (
    ActionResult,
    ArticleCommentResponse,
    ArticlePayload,
    ArticleResponse,
    ForumDetailResponse,
    ForumPayload,
    ForumResponse,
    JournalEntryResponse,
    LessonDetailResponse,
    LessonPayload,
    LessonResponse,
    LessonUpdatePayload,
    ModuleDetailResponse,
    ModulePayload,
    ModuleResponse,
    StepPayload,
    StepResponse,
    StepUpdatePayload,
    ThreadDetailResponse,
    ThreadResponse,
    CommentResponse,
)
from haven_admin.services.article_service import ArticleService, JournalService
from haven_admin.services.content_tree import ContentTreeService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["Staff Admin"], dependencies=[Depends(staff_gate)])


# --- Articles ---

@router.get("/articles", response_model=List[ArticleResponse])
async def list_articles(db: Session = Depends(get_db)):
    return ArticleService.list_articles(db)


@router.post("/articles", response_model=ArticleResponse)
async def add_article(payload: ArticlePayload, db: Session = Depends(get_db)):
    return ArticleService.create_article(db, **payload.model_dump())


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: str, db: Session = Depends(get_db)):
    try:
        return ArticleService.get_article(db, article_id)
    except NotFoundError as e:
        raise DetailNotFound("/admin/articles", e.message)


@router.put("/articles/{article_id}", response_model=ArticleResponse)
async def update_article(article_id: str, payload: ArticlePayload, db: Session = Depends(get_db)):
    return ArticleService.update_article(db, article_id, **payload.model_dump())


@router.delete("/articles/{article_id}", response_model=ActionResult)
async def delete_article(article_id: str, db: Session = Depends(get_db)):
    ArticleService.delete_article(db, article_id)
    return ActionResult(message="Article deleted")


@router.get("/articles/{article_id}/comments", response_model=List[ArticleCommentResponse])
async def list_article_comments(article_id: str, db: Session = Depends(get_db)):
    try:
        ArticleService.get_article(db, article_id)
    except NotFoundError as e:
        raise DetailNotFound("/admin/articles", e.message)
    return [ArticleCommentResponse.from_comment(c) for c in ArticleService.list_comments(db, article_id)]


@router.delete("/articles/{article_id}/comments/{comment_id}", response_model=ActionResult)
async def delete_article_comment(article_id: str, comment_id: str, db: Session = Depends(get_db)):
    ArticleService.delete_comment(db, comment_id, article_id)
    return ActionResult(message="Comment deleted")


# --- Modules ---

@router.get("/modules", response_model=List[ModuleResponse])
async def list_modules(db: Session = Depends(get_db)):
    return ContentTreeService.list_modules(db)


@router.post("/modules", response_model=ModuleResponse)
async def create_module(payload: ModulePayload, db: Session = Depends(get_db)):
    return ContentTreeService.create_module(db, **payload.model_dump())


@router.get("/modules/{module_id}", response_model=ModuleDetailResponse)
async def get_module(module_id: str, db: Session = Depends(get_db)):
    try:
        return ContentTreeService.get_module(db, module_id)
    except NotFoundError as e:
        raise DetailNotFound("/admin/modules", e.message)


@router.put("/modules/{module_id}", response_model=ModuleResponse)
async def update_module(module_id: str, payload: ModulePayload, db: Session = Depends(get_db)):
    return ContentTreeService.update_module(db, module_id, **payload.model_dump())


@router.delete("/modules/{module_id}", response_model=ActionResult)
async def delete_module(module_id: str, db: Session = Depends(get_db)):
    ContentTreeService.delete_module(db, module_id)
    return ActionResult(message="Module deleted")


@router.post("/modules/{module_id}/lessons", response_model=LessonResponse)
async def create_lesson(module_id: str, payload: LessonPayload, db: Session = Depends(get_db)):
    return ContentTreeService.create_lesson(db, module_id, payload.title, order=payload.order)


@router.get("/modules/{module_id}/lessons/{lesson_id}", response_model=LessonDetailResponse)
async def get_lesson(module_id: str, lesson_id: str, db: Session = Depends(get_db)):
    try:
        return ContentTreeService.get_lesson(db, lesson_id, module_id)
    except NotFoundError as e:
        raise DetailNotFound(f"/admin/modules/{module_id}", e.message)


@router.put("/modules/{module_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def update_lesson(module_id: str, lesson_id: str, payload: LessonUpdatePayload, db: Session = Depends(get_db)):
    return ContentTreeService.update_lesson(db, lesson_id, payload.title, payload.order, module_id=module_id)


@router.delete("/modules/{module_id}/lessons/{lesson_id}", response_model=ActionResult)
async def delete_lesson(module_id: str, lesson_id: str, db: Session = Depends(get_db)):
    ContentTreeService.delete_lesson(db, lesson_id, module_id)
    return ActionResult(message="Lesson deleted")


@router.post("/modules/{module_id}/lessons/{lesson_id}/steps", response_model=StepResponse)
async def create_step(module_id: str, lesson_id: str, payload: StepPayload, db: Session = Depends(get_db)):
    ContentTreeService.get_lesson(db, lesson_id, module_id)
    return ContentTreeService.create_step(
        db,
        lesson_id,
        payload.type,
        content=payload.content,
        prompt_question=payload.prompt_question,
        order=payload.order,
    )


@router.put("/modules/{module_id}/lessons/{lesson_id}/steps/{step_id}", response_model=StepResponse)
async def update_step(
    module_id: str,
    lesson_id: str,
    step_id: str,
    payload: StepUpdatePayload,
    db: Session = Depends(get_db)
):
    ContentTreeService.get_lesson(db, lesson_id, module_id)
    return ContentTreeService.update_step(
        db,
        step_id,
        payload.type,
        payload.order,
        content=payload.content,
        prompt_question=payload.prompt_question,
        lesson_id=lesson_id,
    )


@router.delete("/modules/{module_id}/lessons/{lesson_id}/steps/{step_id}", response_model=ActionResult)
async def delete_step(module_id: str, lesson_id: str, step_id: str, db: Session = Depends(get_db)):
    ContentTreeService.get_lesson(db, lesson_id, module_id)
    ContentTreeService.delete_step(db, step_id, lesson_id)
    return ActionResult(message="Step deleted")


# --- Community ---

@router.get("/community", response_model=List[ForumResponse])
async def list_forums(db: Session = Depends(get_db)):
    return ContentTreeService.list_forums(db)


@router.post("/community", response_model=ForumResponse)
async def create_forum(payload: ForumPayload, db: Session = Depends(get_db)):
    return ContentTreeService.create_forum(db, **payload.model_dump())


@router.get("/community/{forum_id}", response_model=ForumDetailResponse)
async def get_forum(forum_id: str, db: Session = Depends(get_db)):
    try:
        forum = ContentTreeService.get_forum(db, forum_id)
    except NotFoundError as e:
        raise DetailNotFound("/admin/community", e.message)
    return ForumDetailResponse(
        **ForumResponse.model_validate(forum).model_dump(),
        threads=[ThreadResponse.from_thread(t) for t in ContentTreeService.list_threads(db, forum_id)],
    )


@router.put("/community/{forum_id}", response_model=ForumResponse)
async def update_forum(forum_id: str, payload: ForumPayload, db: Session = Depends(get_db)):
    return ContentTreeService.update_forum(db, forum_id, **payload.model_dump())


@router.delete("/community/{forum_id}", response_model=ActionResult)
async def delete_forum(forum_id: str, db: Session = Depends(get_db)):
    ContentTreeService.delete_forum(db, forum_id)
    return ActionResult(message="Forum deleted")


@router.get("/community/{forum_id}/threads/{thread_id}", response_model=ThreadDetailResponse)
async def get_thread(forum_id: str, thread_id: str, db: Session = Depends(get_db)):
    try:
        thread = ContentTreeService.get_thread(db, thread_id, forum_id)
    except NotFoundError as e:
        raise DetailNotFound(f"/admin/community/{forum_id}", e.message)
    return ThreadDetailResponse(
        **ThreadResponse.from_thread(thread).model_dump(),
        comments=[CommentResponse.from_comment(c) for c in ContentTreeService.list_comments(db, thread_id)],
    )


@router.delete("/community/{forum_id}/threads/{thread_id}", response_model=ActionResult)
async def delete_thread(forum_id: str, thread_id: str, db: Session = Depends(get_db)):
    ContentTreeService.delete_thread(db, thread_id, forum_id)
    return ActionResult(message="Thread deleted")


@router.delete("/community/{forum_id}/threads/{thread_id}/comments/{comment_id}", response_model=ActionResult)
async def delete_comment(forum_id: str, thread_id: str, comment_id: str, db: Session = Depends(get_db)):
    ContentTreeService.delete_comment(db, comment_id, thread_id)
    return ActionResult(message="Comment deleted")


# --- Journals ---

@router.get("/journals", response_model=List[JournalEntryResponse])
async def list_journals(db: Session = Depends(get_db)):
    return [JournalEntryResponse.from_entry(e) for e in JournalService.list_entries(db)]


@router.delete("/journals/{entry_id}", response_model=ActionResult)
async def delete_journal(entry_id: str, db: Session = Depends(get_db)):
    JournalService.delete_entry(db, entry_id)
    return ActionResult(message="Journal entry deleted")
