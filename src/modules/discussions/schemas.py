# src/discussions/schemas.py

from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel

from src.models.models import ModerationActionType, ModerationTargetType
from src.modules.user.schemas import UserSummary

class ReplyResponse(BaseModel):
    id: UUID
    author_id: UUID
    author: Optional[UserSummary] = None
    content: str
    is_edited: bool
    reply_to_id: Optional[UUID] = None
    reply_to: Optional[UserSummary] = None
    # Hidden replies are still returned; clients decide how to render them.
    is_hidden: bool
    hidden_by_id: Optional[UUID] = None
    hidden_by: Optional[UserSummary] = None
    replies: List["ReplyResponse"] = []
    created_at: datetime
    updated_at: datetime

class CommentResponse(BaseModel):
    id: UUID
    author_id: UUID
    author: Optional[UserSummary] = None
    content: str
    is_edited: bool
    is_hidden: bool
    hidden_by_id: Optional[UUID] = None
    hidden_by: Optional[UserSummary] = None
    replies: List[ReplyResponse] = []
    created_at: datetime
    updated_at: datetime

class DiscussionResponse(BaseModel):
    id: UUID
    subject_id: UUID
    author_id: UUID
    author: Optional[UserSummary] = None
    title: str
    content: str
    is_edited: bool
    comments: List[CommentResponse] = []
    created_at: datetime
    updated_at: datetime

class DiscussionCreateRequest(BaseModel):
    title: str
    content: str

class DiscussionUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None

class CommentCreateRequest(BaseModel):
    content: str

class CommentUpdateRequest(BaseModel):
    content: str

class ReplyCreateRequest(BaseModel):
    content: str
    # User being addressed by this reply (display only).
    reply_to_user_id: Optional[UUID] = None
    # Attach under an existing reply instead of directly under the comment.
    parent_reply_id: Optional[UUID] = None

class ReplyUpdateRequest(BaseModel):
    content: str

class ModerationActionResponse(BaseModel):
    id: UUID
    discussion_id: UUID
    target_type: ModerationTargetType
    target_id: UUID
    action: ModerationActionType
    moderator_id: UUID
    moderator: Optional[UserSummary] = None
    created_at: datetime

    class Config:
        from_attributes = True

ReplyResponse.model_rebuild()
