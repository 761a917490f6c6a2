# src/discussions/discussion_controller.py

from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.discussions import discussion_service, schemas
from src.common.database.database import get_db_session
from src.common.request_logger import RequestLogger, get_request_id, request_logger
from src.common.utils.global_messages import GlobalMessages
from src.auth.dependencies import get_current_user
from src.models.models import User
from src.modules.subjects.subject_registry import SubjectRegistry, get_subject_registry

router = APIRouter(tags=["discussions"])

def get_discussion_logger(
    request_id: str = Depends(get_request_id),
    current_user: User = Depends(get_current_user)
) -> RequestLogger:
    return request_logger(discussion_service.__name__, request_id, str(current_user.id))

# POST /subjects/{subject_id}/discussions – Create a new discussion.
@router.post("/subjects/{subject_id}/discussions", response_model=schemas.DiscussionResponse, status_code=status.HTTP_201_CREATED)
async def create_discussion(
    subject_id: UUID,
    discussion: schemas.DiscussionCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.create_discussion(subject_id, discussion.model_dump(), current_user, db, registry, log)

# GET /subjects/{subject_id}/discussions – Retrieve all discussions for a subject.
@router.get("/subjects/{subject_id}/discussions", response_model=List[schemas.DiscussionResponse])
async def get_discussions(
    subject_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry)
):
    return await discussion_service.get_discussions_for_subject(subject_id, current_user, db, registry)

# GET /discussions/{discussion_id} – Retrieve a single discussion with its comment tree.
@router.get("/discussions/{discussion_id}", response_model=schemas.DiscussionResponse)
async def get_discussion(
    discussion_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry)
):
    return await discussion_service.get_discussion(discussion_id, current_user, db, registry)

# PUT /discussions/{discussion_id} – Update a discussion's title or content.
@router.put("/discussions/{discussion_id}", response_model=schemas.DiscussionResponse)
async def update_discussion(
    discussion_id: UUID,
    discussion: schemas.DiscussionUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.update_discussion(discussion_id, discussion.model_dump(), current_user, db, registry, log)

# DELETE /discussions/{discussion_id} – Delete a discussion and its comments.
@router.delete("/discussions/{discussion_id}", response_model=dict)
async def delete_discussion(
    discussion_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    await discussion_service.delete_discussion(discussion_id, current_user, db, registry, log)
    return {"message": GlobalMessages.DISCUSSION_DELETED}

# GET /discussions/{discussion_id}/moderation-log – Hide/unhide history (admins).
@router.get("/discussions/{discussion_id}/moderation-log", response_model=List[schemas.ModerationActionResponse])
async def get_moderation_log(
    discussion_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry)
):
    return await discussion_service.get_moderation_log(discussion_id, current_user, db, registry)

# POST /discussions/{discussion_id}/comments – Add a comment.
@router.post("/discussions/{discussion_id}/comments", response_model=schemas.DiscussionResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    discussion_id: UUID,
    comment: schemas.CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.add_comment(discussion_id, comment.content, current_user, db, registry, log)

# PUT /discussions/{discussion_id}/comments/{comment_id} – Edit own comment.
@router.put("/discussions/{discussion_id}/comments/{comment_id}", response_model=schemas.DiscussionResponse)
async def update_comment(
    discussion_id: UUID,
    comment_id: UUID,
    comment: schemas.CommentUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.update_comment(discussion_id, comment_id, comment.content, current_user, db, registry, log)

# DELETE /discussions/{discussion_id}/comments/{comment_id} – Delete a comment and its replies.
@router.delete("/discussions/{discussion_id}/comments/{comment_id}", response_model=schemas.DiscussionResponse)
async def delete_comment(
    discussion_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.delete_comment(discussion_id, comment_id, current_user, db, registry, log)

# PATCH /discussions/{discussion_id}/comments/{comment_id}/hide – Toggle hidden state (admins).
@router.patch("/discussions/{discussion_id}/comments/{comment_id}/hide", response_model=schemas.DiscussionResponse)
async def toggle_hide_comment(
    discussion_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.toggle_hide_comment(discussion_id, comment_id, current_user, db, registry, log)

# POST /discussions/{discussion_id}/comments/{comment_id}/replies – Reply to a comment or a reply.
@router.post(
    "/discussions/{discussion_id}/comments/{comment_id}/replies",
    response_model=schemas.DiscussionResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply: schemas.ReplyCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.add_reply(discussion_id, comment_id, reply.model_dump(), current_user, db, registry, log)

# PUT /discussions/{discussion_id}/comments/{comment_id}/replies/{reply_id} – Edit own reply.
@router.put("/discussions/{discussion_id}/comments/{comment_id}/replies/{reply_id}", response_model=schemas.DiscussionResponse)
async def update_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply_id: UUID,
    reply: schemas.ReplyUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.update_reply(
        discussion_id, comment_id, reply_id, reply.content, current_user, db, registry, log
    )

# DELETE /discussions/{discussion_id}/comments/{comment_id}/replies/{reply_id} – Delete a reply subtree.
@router.delete("/discussions/{discussion_id}/comments/{comment_id}/replies/{reply_id}", response_model=schemas.DiscussionResponse)
async def delete_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.delete_reply(discussion_id, comment_id, reply_id, current_user, db, registry, log)

# PATCH /discussions/{discussion_id}/comments/{comment_id}/replies/{reply_id}/hide – Toggle hidden state (admins).
@router.patch(
    "/discussions/{discussion_id}/comments/{comment_id}/replies/{reply_id}/hide",
    response_model=schemas.DiscussionResponse
)
async def toggle_hide_reply(
    discussion_id: UUID,
    comment_id: UUID,
    reply_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    registry: SubjectRegistry = Depends(get_subject_registry),
    log: RequestLogger = Depends(get_discussion_logger)
):
    return await discussion_service.toggle_hide_reply(discussion_id, comment_id, reply_id, current_user, db, registry, log)
