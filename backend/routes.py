"""API routes for the Arina business analytics backend."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from .auth import require_user
from .health import check_chat_provider_health, check_database_health
from .models import (
    AnalysisOutcomeModel,
    AnalysisResultModel,
    AnalysisRunRequest,
    AnalysisSaveRequest,
    AuthUserPublic,
    ChartFigureRequest,
    ChatCreateRequest,
    ChatModel,
    ChatSendRequest,
    ChatSendResponse,
    ChatWithAIRequest,
    ConversationCreate,
    ConversationModel,
    DeleteResponse,
    EntityCreate,
    EntityModel,
    FeatureCatalog,
    GenerateChartRequest,
    GenerateEmbeddingRequest,
    MemoryContextResponse,
    MemoryMessageCreate,
    MemoryMessageModel,
    MessageModel,
    ProfileModel,
    ProfileUpdate,
    SessionDataModel,
    SessionDataWrite,
)
from .providers import ProviderError
from .services import RecordNotFoundError, WorkspaceService, get_workspace_service

LOGGER = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["data"])


def resolve_workspace_service() -> WorkspaceService:
    """Wrapper to allow monkeypatching of the shared workspace service dependency."""
    return get_workspace_service()


def _not_found(exc: RecordNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/health/database", tags=["health"])
def health_database() -> Dict[str, Any]:
    """Return the health status for the configured database."""
    result = check_database_health()
    return result.to_dict()


@router.get("/health/chat-provider", tags=["health"])
def health_chat_provider() -> Dict[str, Any]:
    """Return the health status for the chat model provider."""
    result = check_chat_provider_health()
    return result.to_dict()


@router.get("/features", response_model=FeatureCatalog)
def list_features(
    service: WorkspaceService = Depends(resolve_workspace_service),
    _: AuthUserPublic = Depends(require_user),
) -> FeatureCatalog:
    """Return the analysis calculators and the chat features with their welcome prompts."""
    return FeatureCatalog(**service.feature_catalog())


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


@router.post("/analysis/{feature_id}/run", response_model=AnalysisOutcomeModel)
def run_analysis(
    feature_id: str,
    payload: AnalysisRunRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    _: AuthUserPublic = Depends(require_user),
) -> AnalysisOutcomeModel:
    """Run a calculator on a form record.

    Invalid inputs are reported through a single ``Error`` metric with a 200
    response; only unknown features are rejected.

    Raises:
        HTTPException: 404 when the feature does not exist.
    """
    try:
        outcome = service.run_analysis(feature_id, payload.inputs)
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return AnalysisOutcomeModel(**outcome.to_dict())


@router.post(
    "/analysis/{feature_id}/results",
    response_model=AnalysisResultModel,
    status_code=status.HTTP_201_CREATED,
)
def save_analysis_result(
    feature_id: str,
    payload: AnalysisSaveRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> AnalysisResultModel:
    result = payload.result.model_dump() if payload.result is not None else None
    try:
        saved = service.save_analysis(
            user.id,
            feature_id,
            payload.inputs,
            result=result,
            generate_image=payload.generate_image,
            image_prompt=payload.image_prompt,
        )
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ProviderError as exc:
        LOGGER.warning("Chart image generation failed while saving analysis: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return AnalysisResultModel(**saved)


@router.get("/analysis/results", response_model=List[AnalysisResultModel])
def list_analysis_results(
    feature_id: Optional[str] = Query(default=None, description="Only results of this feature"),
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> List[AnalysisResultModel]:
    return [AnalysisResultModel(**record) for record in service.list_analysis_results(user.id, feature_id)]


@router.get("/analysis/results/{result_id}", response_model=AnalysisResultModel)
def get_analysis_result(
    result_id: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> AnalysisResultModel:
    try:
        return AnalysisResultModel(**service.get_analysis_result(user.id, result_id))
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc


@router.delete("/analysis/results/{result_id}", response_model=DeleteResponse)
def delete_analysis_result(
    result_id: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> DeleteResponse:
    try:
        service.delete_analysis_result(user.id, result_id)
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return DeleteResponse(deleted=1)


@router.post("/charts/figure")
def chart_figure(
    payload: ChartFigureRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    _: AuthUserPublic = Depends(require_user),
) -> Dict[str, Any]:
    """Render chart points as a plotly figure (``data`` and ``layout``)."""
    try:
        return service.build_figure(payload.feature_id, payload.chart_data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Chats
# ---------------------------------------------------------------------------


@router.get("/chats", response_model=List[ChatModel])
def list_chats(
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> List[ChatModel]:
    """Return the user's chats, most recently updated first."""
    return [ChatModel(**chat) for chat in service.list_chats(user.id)]


@router.post("/chats", response_model=ChatModel, status_code=status.HTTP_201_CREATED)
def create_chat(
    payload: ChatCreateRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> ChatModel:
    try:
        return ChatModel(**service.create_chat(user.id, payload.title))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/chats/{chat_id}", response_model=DeleteResponse)
def delete_chat(
    chat_id: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> DeleteResponse:
    try:
        service.delete_chat(user.id, chat_id)
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return DeleteResponse(deleted=1)


@router.get("/chats/{chat_id}/messages", response_model=List[MessageModel])
def list_chat_messages(
    chat_id: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> List[MessageModel]:
    try:
        messages = service.list_messages(user.id, chat_id)
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return [MessageModel(**message) for message in messages]


@router.post("/chats/send", response_model=ChatSendResponse)
def send_chat_message(
    payload: ChatSendRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> ChatSendResponse:
    """Post a user message and return the stored assistant answer.

    Raises:
        HTTPException: 400 for blank content, 404 for a foreign chat and 502
            when the chat provider fails (the user message stays stored).
    """
    try:
        outcome = service.send_chat_message(
            user.id,
            payload.content,
            chat_id=payload.chat_id,
            selected_feature=payload.selected_feature,
            use_memory=payload.use_memory,
        )
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ProviderError as exc:
        LOGGER.warning("Chat provider call failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return ChatSendResponse(
        chat=ChatModel(**outcome["chat"]),
        user_message=MessageModel(**outcome["user_message"]),
        assistant_message=MessageModel(**outcome["assistant_message"]),
        off_topic=outcome["off_topic"],
    )


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------


@router.post("/functions/chat-with-ai", tags=["functions"])
def chat_with_ai(
    payload: ChatWithAIRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    _: AuthUserPublic = Depends(require_user),
) -> JSONResponse:
    """Stateless chat completion returning ``{"response": text}``."""
    memory_context = payload.memoryContext.model_dump() if payload.memoryContext is not None else None
    try:
        reply = service.chat_completion(
            [message.model_dump() for message in payload.messages],
            payload.selectedFeature,
            memory_context,
        )
    except (ValueError, ProviderError) as exc:
        LOGGER.warning("chat-with-ai failed: %s", exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})
    return JSONResponse(content={"response": reply.content})


@router.post("/functions/generate-chart", tags=["functions"])
def generate_chart(
    payload: GenerateChartRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    _: AuthUserPublic = Depends(require_user),
) -> JSONResponse:
    """Return ``{"imageUrl": url}`` for a chart of the prompt."""
    if not payload.prompt:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing prompt parameter"})
    try:
        image_url = service.generate_chart(payload.prompt, payload.featureId)
    except (ValueError, ProviderError) as exc:
        LOGGER.error("generate-chart failed: %s", exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})
    return JSONResponse(content={"imageUrl": image_url})


@router.post("/functions/generate-embedding", tags=["functions"])
def generate_embedding(
    payload: GenerateEmbeddingRequest,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> JSONResponse:
    """Embed text and optionally store the vector on one of the user's memory messages."""
    try:
        embedding = service.generate_embedding(user.id, payload.text, payload.messageId)
    except (ValueError, ProviderError, RecordNotFoundError) as exc:
        message = str(exc)
        LOGGER.warning("generate-embedding failed: %s", message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "error": message})
    return JSONResponse(content={"success": True, "embedding": embedding, "messageId": payload.messageId})


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


@router.get("/memory/profile", response_model=Optional[ProfileModel], tags=["memory"])
def get_profile(
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> Optional[ProfileModel]:
    profile = service.memory.get_profile(user.id)
    return ProfileModel(**profile) if profile is not None else None


@router.put("/memory/profile", response_model=ProfileModel, tags=["memory"])
def update_profile(
    payload: ProfileUpdate,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> ProfileModel:
    """Create or partially update the business profile."""
    profile = service.memory.save_profile(user.id, payload.model_dump(exclude_unset=True))
    return ProfileModel(**profile)


@router.get("/memory/conversations", response_model=List[ConversationModel], tags=["memory"])
def list_conversations(
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> List[ConversationModel]:
    return [ConversationModel(**item) for item in service.memory.list_conversations(user.id)]


@router.post(
    "/memory/conversations",
    response_model=ConversationModel,
    status_code=status.HTTP_201_CREATED,
    tags=["memory"],
)
def create_conversation(
    payload: ConversationCreate,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> ConversationModel:
    conversation = service.memory.create_conversation(
        user.id,
        payload.title,
        analysis_type=payload.analysis_type,
        summary=payload.summary,
        tags=payload.tags,
    )
    return ConversationModel(**conversation)


@router.get(
    "/memory/conversations/{conversation_id}/messages",
    response_model=List[MemoryMessageModel],
    tags=["memory"],
)
def list_memory_messages(
    conversation_id: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> List[MemoryMessageModel]:
    try:
        messages = service.list_memory_messages(user.id, conversation_id)
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return [MemoryMessageModel(**message) for message in messages]


@router.post(
    "/memory/conversations/{conversation_id}/messages",
    response_model=MemoryMessageModel,
    status_code=status.HTTP_201_CREATED,
    tags=["memory"],
)
def add_memory_message(
    conversation_id: str,
    payload: MemoryMessageCreate,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> MemoryMessageModel:
    """Store a memory message; its embedding is attached when the embedding API is available."""
    try:
        message = service.add_memory_message(user.id, conversation_id, payload.role, payload.content)
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return MemoryMessageModel(**message)


@router.get("/memory/entities", response_model=List[EntityModel], tags=["memory"])
def list_entities(
    entity_type: Optional[str] = Query(default=None),
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> List[EntityModel]:
    return [EntityModel(**entity) for entity in service.memory.list_entities(user.id, entity_type)]


@router.post("/memory/entities", response_model=EntityModel, tags=["memory"])
def save_entity(
    payload: EntityCreate,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> EntityModel:
    """Create an entity or merge attributes into the existing one of the same type and name."""
    entity = service.memory.save_entity(user.id, payload.entity_type, payload.entity_name, payload.attributes)
    return EntityModel(**entity)


@router.post("/memory/sessions/cleanup", response_model=DeleteResponse, tags=["memory"])
def cleanup_sessions(
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> DeleteResponse:
    return DeleteResponse(deleted=service.memory.cleanup_expired_sessions(user.id))


@router.put("/memory/sessions/{session_key}", response_model=SessionDataModel, tags=["memory"])
def save_session_data(
    session_key: str,
    payload: SessionDataWrite,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> SessionDataModel:
    record = service.memory.save_session_data(
        user.id, session_key, payload.data, ttl_minutes=payload.ttl_minutes
    )
    return SessionDataModel(**record)


@router.get("/memory/sessions/{session_key}", response_model=SessionDataModel, tags=["memory"])
def get_session_data(
    session_key: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> SessionDataModel:
    try:
        return SessionDataModel(**service.get_session_data(user.id, session_key))
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/memory/context", response_model=MemoryContextResponse, tags=["memory"])
def get_memory_context(
    query: Optional[str] = Query(default=None, description="Text to match against past messages"),
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> MemoryContextResponse:
    context = service.memory.retrieve_context(user.id, query)
    return MemoryContextResponse(**context.to_dict())


@router.delete("/memory/{data_type}", response_model=DeleteResponse, tags=["memory"])
def delete_memory_data(
    data_type: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> DeleteResponse:
    """Delete every conversation, entity or session row of the user."""
    try:
        removed = service.delete_memory_data(user.id, data_type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DeleteResponse(deleted=removed)


@router.delete("/memory/{data_type}/{item_id}", response_model=DeleteResponse, tags=["memory"])
def delete_memory_item(
    data_type: str,
    item_id: str,
    service: WorkspaceService = Depends(resolve_workspace_service),
    user: AuthUserPublic = Depends(require_user),
) -> DeleteResponse:
    try:
        removed = service.delete_memory_data(user.id, data_type, item_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RecordNotFoundError as exc:
        raise _not_found(exc) from exc
    return DeleteResponse(deleted=removed)
