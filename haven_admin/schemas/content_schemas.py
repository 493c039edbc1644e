"""
Pydantic schemas for modules, lessons, steps, articles, forums and journals
"""

from pydantic import BaseModel
from typing import List, Optional, Union
from datetime import datetime

from haven_admin.models.profile import display_name


class ActionResult(BaseModel):
    """Notice returned by every mutation"""
    success: bool = True
    message: str


# --- Modules / lessons / steps ---

class ModulePayload(BaseModel):
    title: str
    image_url: str
    subtitle: Optional[str] = None
    category: Optional[str] = None


class StepPayload(BaseModel):
    type: str = "text"
    content: Optional[str] = None
    prompt_question: Optional[str] = None
    order: Optional[int] = None


class StepUpdatePayload(BaseModel):
    type: str
    order: int
    content: Optional[str] = None
    prompt_question: Optional[str] = None


class LessonPayload(BaseModel):
    title: str
    order: Optional[int] = None


class LessonUpdatePayload(BaseModel):
    title: str
    order: int


class StepResponse(BaseModel):
    id: str
    lesson_id: str
    order: int
    type: str
    content: Optional[str] = None
    prompt_question: Optional[str] = None

    class Config:
        from_attributes = True


class LessonResponse(BaseModel):
    id: str
    module_id: str
    title: str
    order: int

    class Config:
        from_attributes = True


class LessonDetailResponse(LessonResponse):
    steps: List[StepResponse] = []


class ModuleResponse(BaseModel):
    id: str
    title: str
    subtitle: Optional[str] = None
    image_url: str
    category: str
    author_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ModuleDetailResponse(ModuleResponse):
    lessons: List[LessonResponse] = []


# --- Articles ---

class ArticlePayload(BaseModel):
    title: str
    author: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    read_time: Optional[Union[int, str]] = None
    content: Optional[str] = None


class ArticleResponse(BaseModel):
    id: str
    title: str
    author: Optional[str] = None
    image_url: Optional[str] = None
    category: str
    read_time: int
    content: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ArticleCommentResponse(BaseModel):
    id: str
    article_id: str
    content: str
    author_name: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_comment(cls, comment) -> "ArticleCommentResponse":
        return cls(
            id=comment.id,
            article_id=comment.article_id,
            content=comment.content,
            author_name=display_name(comment.author, "Anonymous"),
            created_at=comment.created_at,
        )


# --- Community ---

class ForumPayload(BaseModel):
    title: str
    description: Optional[str] = None
    icon: Optional[str] = None


class ForumResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    icon: Optional[str] = None

    class Config:
        from_attributes = True


class CommentPayload(BaseModel):
    content: str


class CommentResponse(BaseModel):
    id: str
    thread_id: str
    content: str
    author_id: Optional[str] = None
    author_name: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_comment(cls, comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            thread_id=comment.thread_id,
            content=comment.content,
            author_id=comment.author_id,
            author_name=display_name(comment.author, "Anonymous"),
            created_at=comment.created_at,
        )


class ThreadResponse(BaseModel):
    id: str
    forum_id: str
    title: str
    original_post: Optional[str] = None
    author_name: str
    comment_count: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_thread(cls, thread) -> "ThreadResponse":
        return cls(
            id=thread.id,
            forum_id=thread.forum_id,
            title=thread.title,
            original_post=thread.original_post,
            author_name=display_name(thread.author, "Anonymous"),
            comment_count=len(thread.comments),
            created_at=thread.created_at,
        )


class ThreadDetailResponse(ThreadResponse):
    comments: List[CommentResponse] = []


class ForumDetailResponse(ForumResponse):
    threads: List[ThreadResponse] = []


# --- Journals ---

class JournalEntryResponse(BaseModel):
    id: str
    title: Optional[str] = None
    content: str
    author_name: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_entry(cls, entry) -> "JournalEntryResponse":
        return cls(
            id=entry.id,
            title=entry.title,
            content=entry.content,
            author_name=display_name(entry.author, "Anonymous"),
            created_at=entry.created_at,
        )


class UploadResponse(BaseModel):
    success: bool = True
    path: str
    url: str
