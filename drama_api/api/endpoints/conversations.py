# drama_api/api/endpoints/conversations.py
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.api.dependencies import get_current_user, verify_conversation_ownership
from drama_api.core.exceptions import NotFoundError, ValidationError
from drama_api.crud import crud_conversation, crud_message
from drama_api.db.base import to_naive_utc, utcnow
from drama_api.db.models import Conversation, User
from drama_api.db.session import get_db, transaction
from drama_api.schemas import (
    ApiResponse, ConversationCreate, ConversationDetail, ConversationExport, ConversationResponse,
    ConversationSummary, ConversationUpdate, MessageCreate, MessageResponse, MessageUpdate,
    Pagination, SortField, SortOrder
)

logger = logging.getLogger(__name__)

# All routes require authentication
router = APIRouter(dependencies=[Depends(get_current_user)])


async def _conversation_detail(db: AsyncSession, conversation: Conversation) -> ConversationDetail:
    messages = await crud_message.get_conversation_messages(db, conversation_id=conversation.id)
    return ConversationDetail(
        conversation=ConversationResponse.model_validate(conversation),
        messages=[MessageResponse.model_validate(m) for m in messages]
    )


@router.get("", response_model=ApiResponse[List[ConversationSummary]], response_model_exclude_unset=True)
async def get_conversations(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        search: Optional[str] = None,
        model: Optional[str] = None,
        sort_by: SortField = "updated_at",
        sort_order: SortOrder = "desc",
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Get the current user's conversations"""
    rows, total = await crud_conversation.list_for_user(
        db,
        user_id=current_user.id,
        page=page,
        limit=limit,
        search=search,
        model=model,
        sort_by=sort_by,
        sort_order=sort_order
    )
    return ApiResponse[List[ConversationSummary]].ok(
        data=[ConversationSummary.model_validate(row) for row in rows],
        pagination=Pagination.build(page, limit, total)
    )


@router.post(
    "",
    response_model=ApiResponse[ConversationResponse],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED
)
async def create_conversation(
        conversation_in: ConversationCreate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Create a new conversation"""
    async with transaction(db):
        conversation = await crud_conversation.create_for_user(
            db,
            user_id=current_user.id,
            title=conversation_in.title,
            model=conversation_in.model,
            settings=conversation_in.settings.to_json() if conversation_in.settings else {}
        )

    logger.info(f"New conversation created: {conversation.id} by user: {current_user.email}")
    return ApiResponse[ConversationResponse].ok(
        data=ConversationResponse.model_validate(conversation),
        message="Conversation created successfully"
    )


@router.get("/{conversation_id}", response_model=ApiResponse[ConversationDetail], response_model_exclude_unset=True)
async def get_conversation(
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Get a conversation with all of its messages"""
    return ApiResponse[ConversationDetail].ok(data=await _conversation_detail(db, conversation))


@router.put("/{conversation_id}", response_model=ApiResponse[ConversationResponse], response_model_exclude_unset=True)
async def update_conversation(
        update_data: ConversationUpdate,
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Update title, model and/or settings"""
    fields = {}
    if update_data.title is not None:
        fields["title"] = update_data.title
    if update_data.model is not None:
        fields["model"] = update_data.model
    if update_data.settings is not None:
        fields["settings"] = update_data.settings.to_json()

    if not fields:
        raise ValidationError("No fields to update")

    async with transaction(db):
        conversation = await crud_conversation.update_fields(db, conversation=conversation, fields=fields)

    return ApiResponse[ConversationResponse].ok(
        data=ConversationResponse.model_validate(conversation),
        message="Conversation updated successfully"
    )


@router.delete("/{conversation_id}", response_model=ApiResponse[None], response_model_exclude_unset=True)
async def delete_conversation(
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Soft delete a conversation"""
    async with transaction(db):
        await crud_conversation.soft_delete(db, conversation=conversation)

    logger.info(f"Conversation deleted: {conversation.id}")
    return ApiResponse[None].ok(message="Conversation deleted successfully")


@router.post(
    "/{conversation_id}/messages",
    response_model=ApiResponse[MessageResponse],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED
)
async def add_message(
        message_in: MessageCreate,
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Add a message; the conversation's updated_at moves with it"""
    async with transaction(db):
        message = await crud_message.create_message(
            db,
            conversation_id=conversation.id,
            role=message_in.role,
            content=message_in.content,
            metadata=message_in.metadata.to_json() if message_in.metadata else {}
        )

    return ApiResponse[MessageResponse].ok(
        data=MessageResponse.model_validate(message),
        message="Message added successfully"
    )


@router.get(
    "/{conversation_id}/messages",
    response_model=ApiResponse[List[MessageResponse]],
    response_model_exclude_unset=True
)
async def get_messages(
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=100),
        before: Optional[datetime] = None,
        after: Optional[datetime] = None,
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Page through messages, oldest first"""
    messages, total = await crud_message.paginate(
        db,
        conversation_id=conversation.id,
        page=page,
        limit=limit,
        before=to_naive_utc(before) if before else None,
        after=to_naive_utc(after) if after else None
    )
    return ApiResponse[List[MessageResponse]].ok(
        data=[MessageResponse.model_validate(m) for m in messages],
        pagination=Pagination.build(page, limit, total)
    )


@router.put(
    "/{conversation_id}/messages/{message_id}",
    response_model=ApiResponse[MessageResponse],
    response_model_exclude_unset=True
)
async def update_message(
        message_id: UUID,
        update_data: MessageUpdate,
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Edit a message's content and/or metadata"""
    if update_data.content is None and update_data.metadata is None:
        raise ValidationError("No fields to update")

    async with transaction(db):
        message = await crud_message.get_live(db, message_id=message_id, conversation_id=conversation.id)
        if message is None:
            raise NotFoundError("Message not found")

        message = await crud_message.update_message(
            db,
            message=message,
            content=update_data.content,
            metadata=update_data.metadata.to_json() if update_data.metadata else None
        )

    return ApiResponse[MessageResponse].ok(
        data=MessageResponse.model_validate(message),
        message="Message updated successfully"
    )


@router.delete(
    "/{conversation_id}/messages/{message_id}",
    response_model=ApiResponse[None],
    response_model_exclude_unset=True
)
async def delete_message(
        message_id: UUID,
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Soft delete a message"""
    async with transaction(db):
        deleted = await crud_message.soft_delete(db, message_id=message_id, conversation_id=conversation.id)
        if not deleted:
            raise NotFoundError("Message not found")

    return ApiResponse[None].ok(message="Message deleted successfully")


@router.get(
    "/{conversation_id}/export",
    response_model=ApiResponse[ConversationExport],
    response_model_exclude_unset=True
)
async def export_conversation(
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db)
):
    """Conversation and ordered messages as one JSON document"""
    detail = await _conversation_detail(db, conversation)
    export = ConversationExport(
        conversation=detail.conversation,
        messages=detail.messages,
        exported_at=utcnow()
    )
    return ApiResponse[ConversationExport].ok(data=export)


@router.post(
    "/{conversation_id}/duplicate",
    response_model=ApiResponse[ConversationResponse],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED
)
async def duplicate_conversation(
        conversation: Conversation = Depends(verify_conversation_ownership),
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Copy a conversation with all of its live messages"""
    async with transaction(db):
        copy = await crud_conversation.duplicate(db, conversation=conversation, user_id=current_user.id)

    logger.info(f"Conversation duplicated: {conversation.id} -> {copy.id}")
    return ApiResponse[ConversationResponse].ok(
        data=ConversationResponse.model_validate(copy),
        message="Conversation duplicated successfully"
    )
