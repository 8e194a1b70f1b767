"""Chat assistant: topic gate, system prompt assembly and provider call."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from . import config
from .memory import format_context
from .providers import ChatTurn, GeminiProvider
from .topic_gate import TopicPolicy, default_policy

LOGGER = logging.getLogger(__name__)

BASE_PERSONA = (
    "You are Arina, an AI assistant specialized in agricultural topics.\n"
    "You provide helpful information about farming, crops, livestock, irrigation, agricultural business,\n"
    "and other farming-related topics. You MUST ONLY answer questions related to agriculture and farming.\n"
    "If a user asks about an unrelated topic, politely redirect them to agricultural topics."
)

# Each scope ends with the wording that marks an out-of-scope answer.
FEATURE_SCOPES: Dict[str, str] = {
    "business-feasibility": (
        "The user is working on a business feasibility analysis of an agricultural business. "
        "Focus on investment cost, operational cost, production cost per unit (HPP), selling price, "
        "ROI, break-even point and payback period. If the question is outside this scope, answer "
        "\"I can only assist with business feasibility analysis\" and suggest a related question."
    ),
    "forecasting": (
        "The user is working on demand forecasting. Focus on Simple Moving Average (SMA) and "
        "Exponential Smoothing forecasts, choosing the window or smoothing factor, and reading "
        "forecast accuracy. If the question is outside this scope, answer \"I can only assist with "
        "demand forecasting\" and suggest a related question."
    ),
    "max-min-analysis": (
        "The user is working on maximization and minimization analysis. Focus on formulating the "
        "objective function and resource constraints (land, capital, labor) and solving them with "
        "the Simplex Method or Linear Programming. If the question is outside this scope, answer "
        "\"I can only perform maximization and minimization analysis\" and suggest a related question."
    ),
    "swot": (
        "The user is working on a SWOT analysis. Focus on the strengths, weaknesses, opportunities "
        "and threats of their agricultural business. If the question is outside this scope, answer "
        "\"I can only discuss SWOT analysis\" and suggest a related question."
    ),
    "canvas": (
        "The user is working on a Business Model Canvas. Focus on the nine canvas sections, from key "
        "partners to revenue streams. If the question is outside this scope, answer \"I can only "
        "discuss the Business Model Canvas\" and suggest a related question."
    ),
}
FEATURE_SCOPES["feasibility"] = FEATURE_SCOPES["business-feasibility"]
FEATURE_SCOPES["optimization"] = FEATURE_SCOPES["max-min-analysis"]

WELCOME_PROMPTS: Dict[str, Dict[str, str]] = {
    "business-feasibility": {
        "name": "Business Feasibility Analysis",
        "prompt": (
            "Welcome to Business Feasibility Analysis. I will help you evaluate the feasibility of your "
            "planned agricultural business. To get started, please provide information about:\n"
            "- Type of agricultural business to analyze\n"
            "- Available initial capital\n"
            "- Estimated operational costs\n"
            "- Target market and selling price\n"
            "- Other relevant supporting data"
        ),
    },
    "forecasting": {
        "name": "Demand Forecasting",
        "prompt": (
            "Welcome to Demand Forecasting. I can help you predict future demand using Simple Moving "
            "Average (SMA) or Exponential Smoothing methods. To get started, please provide:\n"
            "- Historical demand data\n"
            "- Time period for forecasting\n"
            "- Preferred forecasting method (SMA or Exponential Smoothing)\n"
            "- For SMA: number of periods to include in the average\n"
            "- For Exponential Smoothing: smoothing factor (0-1)"
        ),
    },
    "max-min-analysis": {
        "name": "Maximization and Minimization Analysis",
        "prompt": (
            "Welcome to Maximization and Minimization Analysis. I will help you optimize resource usage "
            "and minimize costs using Simplex Method or Linear Programming. To get started, please provide "
            "information about:\n"
            "- Available resources (land, capital, labor)\n"
            "- Constraints on resources\n"
            "- Objective function (what to maximize or minimize)\n"
            "- Preferred method (Simplex or Linear Programming)"
        ),
    },
}

OFF_TOPIC_MARKERS = (
    "I can only discuss",
    "I can only assist with",
    "I can only perform",
    "I'm specialized in business topics",
    "I'm specialized in agricultural topics",
)


@dataclass
class AssistantReply:
    """Outcome of one assistant turn.

    Attributes:
        content: Text shown to the user.
        off_topic: True when the text is a refusal or a scope redirect.
        gated: True when the topic gate answered without calling the provider.
        model: Model that produced the text, if any.
    """

    content: str
    off_topic: bool = False
    gated: bool = False
    model: Optional[str] = None


def welcome_chat_features() -> List[Dict[str, str]]:
    return [{"id": feature_id, **payload} for feature_id, payload in WELCOME_PROMPTS.items()]


def is_off_topic_response(text: str) -> bool:
    return any(marker in text for marker in OFF_TOPIC_MARKERS)


def build_system_prompt(
    selected_feature: Optional[str] = None,
    memory_context: Optional[Mapping[str, Any]] = None,
) -> str:
    """Persona, then the feature scope, then the remembered user context."""
    prompt = BASE_PERSONA
    if selected_feature:
        scope = FEATURE_SCOPES.get(selected_feature)
        if scope is None:
            scope = (
                f"The user is currently interested in {selected_feature}. "
                "Focus your response on this specific agricultural topic."
            )
        prompt += f"\n\n{scope}"
    memory_block = format_context(memory_context)
    if memory_block:
        prompt += f"\n\n{memory_block}"
    return prompt


def to_turns(messages: Sequence[Mapping[str, Any]], limit: int) -> List[ChatTurn]:
    """Keep the trailing ``limit`` messages; "user" stays, every other role becomes "model"."""
    trimmed = list(messages)[-limit:] if limit > 0 else list(messages)
    return [
        ChatTurn(role="user" if item.get("role") == "user" else "model", content=str(item.get("content") or ""))
        for item in trimmed
    ]


class ChatAssistant:
    """Answers chat messages through the chat provider behind a topic gate."""

    def __init__(
        self,
        provider: GeminiProvider,
        policy: Optional[TopicPolicy] = None,
        history_limit: Optional[int] = None,
    ) -> None:
        self._provider = provider
        self.policy = policy or default_policy()
        self.history_limit = config.CHAT_HISTORY_LIMIT if history_limit is None else history_limit

    def reply(
        self,
        messages: Sequence[Mapping[str, Any]],
        selected_feature: Optional[str] = None,
        memory_context: Optional[Mapping[str, Any]] = None,
        *,
        latest: Optional[str] = None,
    ) -> AssistantReply:
        """Answer the last message of ``messages``.

        ``latest`` is the text to gate when the caller already holds it;
        otherwise the content of the last message is used.

        Raises:
            ValueError: If ``messages`` is empty.
            ProviderError: If the provider call fails.
        """
        if not messages:
            raise ValueError("At least one message is required")
        last = latest if latest is not None else str(messages[-1].get("content") or "")
        if not self.policy.is_on_topic(last):
            LOGGER.info("Topic gate refused a message (feature=%s)", selected_feature or "-")
            return AssistantReply(content=self.policy.refusal, off_topic=True, gated=True)

        system = build_system_prompt(selected_feature, memory_context)
        turns = to_turns(messages, self.history_limit)
        result = self._provider.generate_chat(turns, system=system)
        off_topic = is_off_topic_response(result.content)
        if off_topic:
            LOGGER.info("Model answered outside the selected scope (feature=%s)", selected_feature or "-")
        return AssistantReply(content=result.content, off_topic=off_topic, model=result.model)
