"""
Disruption Response Orchestration - LangGraph workflow

This module implements the LangGraph workflow that takes one disruption from
detection to resolution.

Workflow Steps:
    1. triage   - prepend a critical alert and raise the optimizing flag
    2. optimize - ask the recommendation engine for a rescheduling plan;
                  the flag is released as soon as the answer (or failure) arrives
    3. settle   - wait the configured settling delay (successful plans only)
    4. resolve  - prepend the "Schedule Optimized" alert (successful plans
                  only) and re-aggregate the session

Each call to handle_disruption() runs its own graph instance, so concurrent
disruptions proceed independently. Any engine error is logged and the
instance still resolves, without a resolution alert. The session is
re-aggregated either way.

Uses LangGraph for state management and LangSmith for full traceability.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, TypedDict, Set

from langgraph.graph import StateGraph, END
from langsmith import traceable

from models.alert import Alert, Disruption, SOURCE_DISRUPTION
from models.exceptions import RecommendationFailure
from agents.rescheduling_agent import (
    RecommendationEngine,
    ReschedulingPlan,
    RESCHEDULING_RESPONSE_SCHEMA,
    build_disruption_prompt,
)
from store.entity_store import EntityStore
from workflows.session import ProductionSession


logger = logging.getLogger(__name__)

# Disruption instance stages
IDLE = "idle"
TRIAGING = "triaging"
OPTIMIZING = "optimizing"
RESOLVED = "resolved"


class DisruptionState(TypedDict):
    """
    State object passed between the nodes of one disruption instance.
    """
    disruption: Disruption
    stage: str
    plan: Optional[ReschedulingPlan]
    error: str
    critical_alert: Optional[Alert]
    resolution_alert: Optional[Alert]


@dataclass(frozen=True)
class DisruptionOutcome:
    """Final state of one disruption instance."""
    disruption: Disruption
    stage: str
    plan: Optional[ReschedulingPlan]
    error: str
    critical_alert: Alert
    resolution_alert: Optional[Alert]

    @property
    def succeeded(self) -> bool:
        return self.plan is not None


class DisruptionResponseOrchestrator:
    """
    LangGraph-based orchestrator for disruption triage and rescheduling.

    The orchestrator owns no state of its own: alerts and the optimizing flag
    live in the ProductionSession it is given.
    """

    def __init__(
        self,
        session: ProductionSession,
        engine: RecommendationEngine,
        store: Optional[EntityStore] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            session: Session whose alerts and flag are updated
            engine: Recommendation engine (e.g. ReschedulingAgent)
            store: Entity store used to reload once resolved; without one the
                session is re-aggregated from its current snapshot
        """
        self.session = session
        self.engine = engine
        self.store = store
        self._background: Set[asyncio.Task] = set()

        self.workflow = self._build_workflow()

    def _build_workflow(self):
        """
        Build the LangGraph state graph for one disruption instance.

        Returns:
            Compiled StateGraph
        """
        graph = StateGraph(DisruptionState)

        graph.add_node("triage", self._triage)
        graph.add_node("optimize", self._optimize)
        graph.add_node("settle", self._settle)
        graph.add_node("resolve", self._resolve)

        graph.set_entry_point("triage")
        graph.add_edge("triage", "optimize")
        graph.add_conditional_edges(
            "optimize",
            self._route_after_optimize,
            {"settle": "settle", "resolve": "resolve"}
        )
        graph.add_edge("settle", "resolve")
        graph.add_edge("resolve", END)

        return graph.compile()

    @traceable(name="Disruption Triage")
    async def _triage(self, state: DisruptionState) -> DisruptionState:
        """
        Step 1: Record the disruption and raise the optimizing flag.
        """
        disruption = state["disruption"]
        logger.warning("Disruption detected: %s on %s", disruption.disruption_type, disruption.resource)

        alert = self.session.alert_feed.prepend(Alert(
            type="critical",
            title=f"Disruption: {disruption.disruption_type}",
            message=f"{disruption.resource} affected - rescheduling jobs...",
            timestamp=disruption.timestamp,
            source=SOURCE_DISRUPTION,
            disruption_id=disruption.disruption_id,
        ))
        self.session.begin_optimization()

        state["critical_alert"] = alert
        state["stage"] = TRIAGING
        return state

    @traceable(name="Rescheduling Request")
    async def _optimize(self, state: DisruptionState) -> DisruptionState:
        """
        Step 2: Request a rescheduling plan from the engine.
        """
        state["stage"] = OPTIMIZING
        prompt = build_disruption_prompt(
            state["disruption"],
            self.session.jobs,
            self.session.machines,
            self.session.workers
        )

        try:
            payload = await self.engine.recommend(prompt, RESCHEDULING_RESPONSE_SCHEMA)
            state["plan"] = ReschedulingPlan.from_response(payload)
        except RecommendationFailure as e:
            logger.error("Optimization failed for %s: %s", state["disruption"], e)
            state["error"] = str(e)
        except Exception as e:
            logger.exception("Recommendation engine raised for %s", state["disruption"])
            state["error"] = f"{type(e).__name__}: {e}"
        finally:
            # The flag tracks requests in flight, not alerts still to be shown
            self.session.end_optimization()

        return state

    def _route_after_optimize(self, state: DisruptionState) -> str:
        return "settle" if state.get("plan") is not None else "resolve"

    @traceable(name="Settling Delay")
    async def _settle(self, state: DisruptionState) -> DisruptionState:
        """
        Step 3: Debounce before surfacing the resolution alert.
        """
        await asyncio.sleep(self.session.settings.settling_delay_seconds)
        return state

    @traceable(name="Disruption Resolution")
    async def _resolve(self, state: DisruptionState) -> DisruptionState:
        """
        Step 4: Announce the new schedule (if any) and re-aggregate.
        """
        plan = state.get("plan")
        if plan is not None:
            delay = plan.delay_or(self.session.settings.default_estimated_delay)
            state["resolution_alert"] = self.session.alert_feed.prepend(Alert(
                type="info",
                title="Schedule Optimized",
                message=f"Production rescheduled with {delay:g} min delay. AI recommendations applied.",
                source=SOURCE_DISRUPTION,
                disruption_id=state["disruption"].disruption_id,
            ))
            logger.info("Disruption %s resolved with %g min delay", state["disruption"].disruption_id, delay)

        state["stage"] = RESOLVED

        if self.store is not None:
            await self.session.reload(self.store)
        else:
            self.session.reaggregate()

        return state

    @traceable(name="Disruption Response")
    async def handle_disruption(self, disruption: Disruption) -> DisruptionOutcome:
        """
        Run one disruption through triage, optimization and resolution.

        This is the main entry point. It only returns once the instance is
        resolved, so a hung engine call keeps it (and the flag) pending.

        Args:
            disruption: The event to respond to

        Returns:
            DisruptionOutcome for the instance
        """
        initial_state = DisruptionState(
            disruption=disruption,
            stage=IDLE,
            plan=None,
            error="",
            critical_alert=None,
            resolution_alert=None
        )

        final_state = await self.workflow.ainvoke(initial_state)

        return DisruptionOutcome(
            disruption=final_state["disruption"],
            stage=final_state["stage"],
            plan=final_state.get("plan"),
            error=final_state.get("error", ""),
            critical_alert=final_state["critical_alert"],
            resolution_alert=final_state.get("resolution_alert"),
        )

    def start(self, disruption: Disruption) -> asyncio.Task:
        """
        Fire-and-forget variant of handle_disruption for UI callers.

        Returns:
            The task running the disruption instance
        """
        task = asyncio.create_task(self.handle_disruption(disruption))
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task):
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Disruption task failed", exc_info=error)


# Example usage and testing
if __name__ == "__main__":
    import random

    from agents.rescheduling_agent import ReschedulingAgent
    from utils.config_loader import load_config
    from utils.data_generator import seed_store, generate_disruption

    logging.basicConfig(level=logging.INFO)

    async def main():
        config = load_config()
        store = seed_store(rng=random.Random(7))
        session = ProductionSession(config['settings'])
        await session.reload(store)

        orchestrator = DisruptionResponseOrchestrator(
            session,
            ReschedulingAgent.from_settings(config['settings'].llm),
            store
        )

        disruption = generate_disruption(session.machines, session.workers, random.Random(7))
        outcome = await orchestrator.handle_disruption(disruption)

        print(f"Outcome: {outcome.stage} (plan received: {outcome.succeeded})")
        for alert in session.alerts:
            print(f"  {alert}")

    asyncio.run(main())
