"""Conversation engine: deterministic LangGraph pipeline.

Graph:

    classify → (appointment?) → extract → respond → END
             → (otherwise)    → respond → END

  - **classify** maps the message to one intent with the ordered keyword
    rules in :mod:`receptionist.conversation.intents`.
  - **extract** pulls day/time out of booking requests, substituting fixed
    defaults when nothing matches.
  - **respond** renders the reply template and, for bookings, the record
    payload.

No node touches the network or the store.  The server wraps the engine with
conversation-log writes; the client runs it bare as its offline fallback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from langgraph.graph import END, StateGraph
from typing_extensions import TypedDict

from receptionist.conversation.entities import ExtractedEntities, extract_entities
from receptionist.conversation.intents import Intent, classify_intent
from receptionist.conversation.responses import generate_response

logger = logging.getLogger(__name__)


# ── State schema ─────────────────────────────────────────────────────


class EngineState(TypedDict, total=False):
    """The state that flows through the graph.

    ``message`` and ``customer_info`` are inputs; every other key is written
    by exactly one node.
    """

    message: str
    customer_info: dict[str, Any] | None
    intent: Intent
    entities: ExtractedEntities
    response: str
    action: str | None
    form_data: dict[str, Any] | None


@dataclass(frozen=True)
class EngineResult:
    intent: Intent
    response: str
    action: str | None
    form_data: dict[str, Any] | None
    entities: ExtractedEntities | None = None


# ── Nodes ────────────────────────────────────────────────────────────


def classify_node(state: EngineState) -> dict:
    intent = classify_intent(state["message"])
    logger.debug("Classified message as %s", intent.value)
    return {"intent": intent}


def extract_node(state: EngineState) -> dict:
    entities = extract_entities(state["message"])
    logger.debug("Extracted day=%r time=%r", entities.day, entities.time)
    return {"entities": entities}


def respond_node(state: EngineState) -> dict:
    generated = generate_response(
        state["intent"], state.get("entities"), state.get("customer_info"),
    )
    return {
        "response": generated.response,
        "action": generated.action,
        "form_data": generated.form_data,
    }


# ── Conditional edges ────────────────────────────────────────────────


def route_by_intent(state: EngineState) -> str:
    """Only booking requests need day/time extraction."""
    if state["intent"] == Intent.APPOINTMENT:
        return "extract"
    return "respond"


# ── Graph assembly ───────────────────────────────────────────────────


def create_conversation_engine():
    """Build and compile the conversation pipeline.

    Returns a compiled graph that can be invoked with:
        engine.invoke({"message": "...", "customer_info": {...}})
    """
    graph = StateGraph(EngineState)

    graph.add_node("classify", classify_node)
    graph.add_node("extract", extract_node)
    graph.add_node("respond", respond_node)

    graph.set_entry_point("classify")
    graph.add_conditional_edges(
        "classify", route_by_intent, {"extract": "extract", "respond": "respond"},
    )
    graph.add_edge("extract", "respond")
    graph.add_edge("respond", END)

    compiled = graph.compile()
    logger.debug("Conversation engine compiled")
    return compiled


def process_message(
    engine, message: str, customer_info: dict[str, Any] | None = None,
) -> EngineResult:
    """Run *message* through *engine* and return a typed result."""
    state = engine.invoke({"message": message, "customer_info": customer_info})
    return EngineResult(
        intent=state["intent"],
        response=state["response"],
        action=state.get("action"),
        form_data=state.get("form_data"),
        entities=state.get("entities"),
    )
