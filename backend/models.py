"""Pydantic models for the Arina business analytics backend."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUserPublic(BaseModel):
    """Public representation of an authenticated account."""

    id: str = Field(..., description="Unique account identifier")
    email: str = Field(..., description="Login email address")
    name: str = Field(..., description="Display name")


# ---------------------------------------------------------------------------
# Features and analysis
# ---------------------------------------------------------------------------


class FeatureField(BaseModel):
    """Form field rendered for an analysis feature."""

    name: str = Field(..., description="Input key submitted to the calculator")
    label: str = Field(..., description="Human-readable label")
    type: Literal["text", "number", "select", "textarea"] = Field(default="text")
    placeholder: Optional[str] = Field(default=None)
    options: List[str] = Field(default_factory=list, description="Choices for select fields")
    condition: Optional[Dict[str, str]] = Field(
        default=None, description="Show the field only when another field has this value"
    )


class AnalysisFeatureInfo(BaseModel):
    id: str
    name: str
    description: str
    implemented: bool
    fields: List[FeatureField] = Field(default_factory=list)


class ChatFeatureInfo(BaseModel):
    """Chat feature with the welcome prompt shown when it is picked."""

    id: str
    name: str
    prompt: str


class FeatureCatalog(BaseModel):
    analysis: List[AnalysisFeatureInfo]
    chat: List[ChatFeatureInfo]


class MetricItem(BaseModel):
    name: str
    value: str


class AnalysisOutcomeModel(BaseModel):
    """Score, metrics and chart points produced by a calculator.

    Attributes:
        score: 0-100 headline score.
        metrics: Ordered labeled values; a single ``Error`` metric marks invalid input.
        chart_data: Chart points whose keys depend on the feature.
    """

    score: float
    metrics: List[MetricItem]
    chart_data: List[Dict[str, Any]]


class AnalysisRunRequest(BaseModel):
    inputs: Dict[str, Any] = Field(default_factory=dict, description="Flat key/value form record")


class AnalysisSaveRequest(BaseModel):
    inputs: Dict[str, Any] = Field(default_factory=dict, description="Flat key/value form record")
    result: Optional[AnalysisOutcomeModel] = Field(
        default=None, description="Previously computed result; recomputed when omitted"
    )
    generate_image: bool = Field(default=False, description="Attach a generated chart image URL")
    image_prompt: Optional[str] = Field(default=None, description="Prompt for the chart image")


class AnalysisResultModel(BaseModel):
    id: str
    feature_id: str
    inputs: Dict[str, Any]
    result: Dict[str, Any]
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class ChartFigureRequest(BaseModel):
    feature_id: str = Field(..., description="Feature whose chart layout to use")
    chart_data: List[Dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Chats
# ---------------------------------------------------------------------------


class ChatModel(BaseModel):
    id: str
    title: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChatCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=512)


class MessageModel(BaseModel):
    id: str
    chat_id: str
    role: str
    content: str
    created_at: Optional[datetime] = None


class ChatSendRequest(BaseModel):
    """Payload for posting a message to a (possibly new) chat."""

    content: str = Field(..., description="User message text")
    chat_id: Optional[str] = Field(default=None, description="Existing chat; a new chat is created when omitted")
    selected_feature: Optional[str] = Field(default=None, description="Chat feature scoping the answer")
    use_memory: bool = Field(default=False, description="Interpolate long-term memory into the prompt")


class ChatSendResponse(BaseModel):
    chat: ChatModel
    user_message: MessageModel
    assistant_message: MessageModel
    off_topic: bool = Field(default=False, description="True when the answer is a refusal or scope redirect")


# ---------------------------------------------------------------------------
# Function contracts (camelCase keys preserved)
# ---------------------------------------------------------------------------


class MemoryContextModel(BaseModel):
    """Memory context accepted in snake_case or camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    profile: Optional[Dict[str, Any]] = None
    recent_messages: List[Dict[str, Any]] = Field(default_factory=list, alias="recentMessages")
    relevant_entities: List[Dict[str, Any]] = Field(default_factory=list, alias="relevantEntities")


class ChatWithAIMessage(BaseModel):
    role: str
    content: str


class ChatWithAIRequest(BaseModel):
    messages: List[ChatWithAIMessage] = Field(default_factory=list)
    selectedFeature: Optional[str] = None
    memoryContext: Optional[MemoryContextModel] = None


class GenerateChartRequest(BaseModel):
    prompt: Optional[str] = None
    featureId: Optional[str] = None


class GenerateEmbeddingRequest(BaseModel):
    text: Optional[str] = None
    messageId: Optional[str] = None


# ---------------------------------------------------------------------------
# Long-term memory
# ---------------------------------------------------------------------------


class ProfileModel(BaseModel):
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    farm_size: Optional[float] = None
    location: Optional[str] = None
    main_crops: List[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    """Partial profile update; omitted fields keep their stored value."""

    business_name: Optional[str] = None
    business_type: Optional[str] = None
    farm_size: Optional[float] = Field(default=None, ge=0)
    location: Optional[str] = None
    main_crops: Optional[List[str]] = None


class ConversationModel(BaseModel):
    id: str
    title: str
    analysis_type: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConversationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=512)
    analysis_type: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class MemoryMessageModel(BaseModel):
    id: str
    conversation_id: str
    role: str
    content: str
    has_embedding: bool = False
    created_at: Optional[datetime] = None


class MemoryMessageCreate(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class EntityModel(BaseModel):
    id: str
    entity_type: str
    entity_name: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class EntityCreate(BaseModel):
    entity_type: str = Field(..., min_length=1, max_length=64)
    entity_name: str = Field(..., min_length=1, max_length=255)
    attributes: Dict[str, Any] = Field(default_factory=dict)


class SessionDataModel(BaseModel):
    session_key: str
    session_data: Any = None
    expires_at: datetime


class SessionDataWrite(BaseModel):
    data: Any = Field(default=None, description="JSON value to store")
    ttl_minutes: Optional[int] = Field(default=None, gt=0, description="Lifetime; defaults to the configured TTL")


class MemoryContextResponse(BaseModel):
    profile: Optional[Dict[str, Any]] = None
    recent_messages: List[Dict[str, Any]] = Field(default_factory=list)
    relevant_entities: List[Dict[str, Any]] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    deleted: int = Field(..., description="Number of rows removed")
