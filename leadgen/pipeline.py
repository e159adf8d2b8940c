"""
The lead generation graph: discover -> research -> aggregate.

Discovery turns the search criteria into company names, research fans out one
staggered task per company (detail research followed by validation) and
aggregation keeps whatever survived.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph

from leadgen.agents.discoverer import discover_companies
from leadgen.agents.researcher import research_company
from leadgen.agents.validator import validate_lead
from leadgen.config import PipelineSettings
from leadgen.errors import AllResearchFailedError
from leadgen.llm_client import GenerativeClient
from leadgen.models.state import (
    GenerationOutcome,
    GenerationRequest,
    Lead,
    PipelineStage,
    PipelineState,
)
from leadgen.retry import ResilientGenerator, Sleep
from leadgen.utils import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)


def _reporter(config: RunnableConfig) -> ProgressReporter:
    return config.get("configurable", {}).get("progress") or ProgressReporter()


class LeadGenerationPipeline:
    """Runs one lead generation request end to end against a generative client."""

    def __init__(
        self,
        client: GenerativeClient,
        settings: Optional[PipelineSettings] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings or PipelineSettings()
        self.generator = ResilientGenerator(client, self.settings.retry, sleep=sleep)
        self._sleep = sleep
        self.graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(PipelineState)

        graph.add_node("discover", self.discover)
        graph.add_node("research", self.research)
        graph.add_node("aggregate", self.aggregate)

        graph.add_edge(START, "discover")
        graph.add_edge("discover", "research")
        graph.add_edge("research", "aggregate")
        graph.add_edge("aggregate", END)

        return graph.compile()

    async def discover(self, state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
        progress = _reporter(config)
        request = state.request
        progress.report(
            f"Searching for businesses in {request.location}...",
            self.settings.research.discovery_progress,
        )

        names = await discover_companies(
            self.generator,
            request,
            model=self.settings.model,
            use_search=self.settings.use_search,
            on_retry=progress.status,
        )

        progress.report(
            f"Found {len(names)} businesses. Starting deep research...",
            self.settings.research.progress_start,
        )
        return {"stage": PipelineStage.RESEARCHING, "company_names": names}

    async def research(self, state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
        progress = _reporter(config)
        policy = self.settings.research
        names = state.company_names
        step = (policy.progress_end - policy.progress_start) / len(names)

        async def research_one(index: int, company_name: str) -> Optional[Lead]:
            await self._sleep(policy.stagger_delay * index)
            progress.report(f"Researching {company_name} ({index + 1}/{len(names)})...")
            advanced = 0.0
            try:
                lead = await research_company(
                    self.generator,
                    state.request,
                    company_name,
                    model=self.settings.model,
                    use_search=self.settings.use_search,
                    retries=policy.detail_retries,
                )
                advanced = step / 2
                progress.advance(f"Validating contact details for {company_name}...", advanced)
                return await validate_lead(
                    self.generator,
                    lead,
                    model=self.settings.model,
                    use_search=self.settings.use_search,
                    retries=policy.validation_retries,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Research failed for '{company_name}', skipping it: {e}")
                return None
            finally:
                progress.advance(f"Finished {company_name}.", step - advanced)

        researched = await asyncio.gather(*(research_one(i, name) for i, name in enumerate(names)))
        return {"stage": PipelineStage.AGGREGATING, "researched": list(researched)}

    async def aggregate(self, state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
        progress = _reporter(config)
        leads = [lead for lead in state.researched if lead is not None]
        failed = len(state.researched) - len(leads)

        if state.company_names and not leads:
            logger.error(f"All {failed} research tasks failed")
            raise AllResearchFailedError()

        if failed:
            logger.warning(f"{failed} of {len(state.company_names)} companies could not be researched")
        progress.report(f"Done! Generated {len(leads)} leads.", 100)
        return {"stage": PipelineStage.DONE, "leads": leads}

    async def generate_leads(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> GenerationOutcome:
        """
        Generate leads for ``request``.

        Raises:
            NoResultsError: discovery found nothing.
            AllResearchFailedError: every company failed research.
            ServiceRefusal, FormatTroubleError: discovery could not complete.
        """
        progress = ProgressReporter(on_progress)
        initial = {"request": request, "stage": PipelineStage.DISCOVERING}
        try:
            final_state = dict(await self.graph.ainvoke(initial, config={"configurable": {"progress": progress}}))
        except Exception as e:
            logger.error(f"Lead generation for '{request.location}' failed ({PipelineStage.FAILED.value}): {e}")
            raise

        logger.info(
            f"Lead generation complete: {len(final_state['leads'])} leads from "
            f"{len(final_state['company_names'])} discovered companies"
        )
        return GenerationOutcome(
            discovered_companies=final_state["company_names"],
            leads=final_state["leads"],
        )
