"""
Rescheduling Agent

This agent is the client side of the external recommendation engine: it asks
an LLM for rescheduling recommendations after a production disruption and
checks that the answer follows the required JSON structure.

Key Responsibilities:
    - Build the disruption prompt from the current snapshot counts
    - Request a structured response matching RESCHEDULING_RESPONSE_SCHEMA
    - Turn transport problems into TransportError
    - Turn non-conforming payloads into SchemaViolation

Uses Groq's llama-3.3-70b-versatile through LangChain structured output.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Sequence, Protocol

from langchain_groq import ChatGroq
from langchain_core.messages import HumanMessage, SystemMessage
from langsmith import traceable

from models.job import Job
from models.machine import Machine
from models.worker import Worker
from models.alert import Disruption
from models.exceptions import SchemaViolation, TransportError


logger = logging.getLogger(__name__)


RESCHEDULING_RESPONSE_SCHEMA: Dict[str, Any] = {
    "title": "ReschedulingPlan",
    "description": "Immediate rescheduling recommendations after a production disruption.",
    "type": "object",
    "properties": {
        "recommendations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "action": {"type": "string"},
                    "resource": {"type": "string"},
                    "impact": {"type": "string"},
                },
            },
        },
        "estimated_delay": {"type": "number"},
        "priority_changes": {"type": "array", "items": {"type": "string"}},
    },
}


class RecommendationEngine(Protocol):
    """Anything that can answer a structured recommendation request."""

    async def recommend(self, prompt: str, response_json_schema: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class Recommendation:
    """One recommended action."""
    action: str
    resource: str = ""
    impact: str = ""


@dataclass(frozen=True)
class ReschedulingPlan:
    """
    Validated engine response.

    estimated_delay is None when the engine omitted it.
    """
    recommendations: List[Recommendation] = field(default_factory=list)
    estimated_delay: Optional[float] = None
    priority_changes: List[str] = field(default_factory=list)

    def delay_or(self, default: float) -> float:
        """Estimated delay in minutes, falling back to ``default`` when missing or 0."""
        return self.estimated_delay or default

    @classmethod
    def from_response(cls, payload: Any) -> 'ReschedulingPlan':
        """
        Validate an engine payload against the response schema.

        Args:
            payload: Decoded JSON returned by the engine

        Returns:
            ReschedulingPlan

        Raises:
            SchemaViolation: If the payload does not conform
        """
        if not isinstance(payload, dict):
            raise SchemaViolation(f"Expected a JSON object, got {type(payload).__name__}")

        raw_recommendations = payload.get("recommendations") or []
        if not isinstance(raw_recommendations, list):
            raise SchemaViolation("'recommendations' must be an array")

        recommendations = []
        for item in raw_recommendations:
            if not isinstance(item, dict):
                raise SchemaViolation("Each recommendation must be an object")
            values = {key: item.get(key, "") for key in ("action", "resource", "impact")}
            if not all(isinstance(v, str) for v in values.values()):
                raise SchemaViolation("Recommendation fields must be strings")
            recommendations.append(Recommendation(**values))

        estimated_delay = payload.get("estimated_delay")
        if estimated_delay is not None and (
            isinstance(estimated_delay, bool) or not isinstance(estimated_delay, (int, float))
        ):
            raise SchemaViolation("'estimated_delay' must be a number")

        priority_changes = payload.get("priority_changes") or []
        if not isinstance(priority_changes, list) or not all(isinstance(p, str) for p in priority_changes):
            raise SchemaViolation("'priority_changes' must be an array of strings")

        return cls(
            recommendations=recommendations,
            estimated_delay=float(estimated_delay) if estimated_delay is not None else None,
            priority_changes=list(priority_changes),
        )


def build_disruption_prompt(
    disruption: Disruption,
    jobs: Sequence[Job],
    machines: Sequence[Machine],
    workers: Sequence[Worker]
) -> str:
    """
    Describe a disruption and the current floor for the engine.

    Args:
        disruption: The event to respond to
        jobs: Current job snapshot
        machines: Current machine snapshot
        workers: Current worker snapshot

    Returns:
        Prompt text
    """
    return (
        f"Production disruption occurred: {disruption.disruption_type} on {disruption.resource}. "
        f"Current jobs: {len(jobs)}, Available machines: {len(machines)}, "
        f"Workers: {len(workers)}. "
        f"Provide immediate rescheduling recommendations to minimize impact."
    )


class ReschedulingAgent:
    """
    Recommendation engine backed by a Groq-hosted LLM.

    The response is requested with LangChain structured output so the model
    is forced to answer with the JSON schema it is given.
    """

    def __init__(
        self,
        groq_api_key: str = None,
        model_name: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 2048,
        llm=None
    ):
        """
        Initialize the Rescheduling Agent.

        Args:
            groq_api_key: Groq API key (if not provided, reads from environment)
            model_name: Groq model (defaults to GROQ_MODEL_AGENTS or llama-3.3-70b-versatile)
            temperature: Sampling temperature
            max_tokens: Response token budget
            llm: Pre-built chat model (skips ChatGroq construction)
        """
        if llm is None:
            if groq_api_key is None:
                groq_api_key = os.getenv('GROQ_API_KEY')

            if not groq_api_key:
                raise ValueError("Groq API key required. Set GROQ_API_KEY environment variable.")

            llm = ChatGroq(
                api_key=groq_api_key,
                model_name=model_name or os.getenv('GROQ_MODEL_AGENTS', 'llama-3.3-70b-versatile'),
                temperature=temperature,
                max_tokens=max_tokens
            )

        self.llm = llm
        self.model_name = getattr(llm, 'model_name', None) or model_name or 'llama-3.3-70b-versatile'

        self.system_prompt = """You are a Rescheduling Agent in a production control system.

Your ONLY job is to:
1. Assess the impact of a production disruption (breakdown, absence, ...)
2. Recommend concrete actions on specific machines, workers or jobs
3. Estimate the resulting delay in minutes
4. List any job priority changes that should be made

IMPORTANT RULES:
- Keep recommendations actionable and short
- Only reference resources mentioned in the request
- Always answer with the requested JSON structure"""

    @classmethod
    def from_settings(cls, llm_settings, groq_api_key: str = None) -> 'ReschedulingAgent':
        """
        Build the agent from the ``llm`` block of the control policy.

        Args:
            llm_settings: utils.config_loader.LLMSettings
            groq_api_key: Groq API key (if not provided, reads from environment)
        """
        return cls(
            groq_api_key=groq_api_key,
            model_name=os.getenv('GROQ_MODEL_AGENTS', llm_settings.model),
            temperature=llm_settings.temperature,
            max_tokens=llm_settings.max_tokens
        )

    @traceable(name="Rescheduling Recommendation")
    async def recommend(self, prompt: str, response_json_schema: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ask the LLM for a structured rescheduling recommendation.

        Args:
            prompt: Disruption description
            response_json_schema: JSON schema the answer must follow

        Returns:
            Decoded JSON object

        Raises:
            TransportError: If the model call fails
            SchemaViolation: If the model does not return a JSON object
        """
        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=prompt)
        ]

        try:
            structured_llm = self.llm.with_structured_output(response_json_schema)
            result = await structured_llm.ainvoke(messages)
        except Exception as e:
            raise TransportError(f"Recommendation engine call failed: {e}") from e

        if not isinstance(result, dict):
            raise SchemaViolation(f"Expected a JSON object, got {type(result).__name__}")

        logger.debug("Engine returned %d recommendation(s)", len(result.get("recommendations") or []))
        return result

    def __str__(self) -> str:
        return f"ReschedulingAgent(model={self.model_name})"
