import logging
from typing import Optional

from leadgen.audit import AuditLogClient
from leadgen.config import PipelineSettings, load_settings
from leadgen.database import LeadStore
from leadgen.errors import LeadGenerationError
from leadgen.llm_client import GeminiClient, GenerativeClient
from leadgen.models.state import GenerationOutcome, GenerationRequest
from leadgen.pipeline import LeadGenerationPipeline
from leadgen.quota import DailyGenerationQuota
from leadgen.utils import ProgressCallback

logger = logging.getLogger(__name__)


class LeadGenerationService:
    """
    Everything around one pipeline run: the daily quota, excluding leads the
    user already saved, auto-saving the results and writing the audit trail.
    """

    def __init__(
        self,
        pipeline: LeadGenerationPipeline,
        store: LeadStore,
        quota: Optional[DailyGenerationQuota] = None,
        audit_client: Optional[AuditLogClient] = None,
    ):
        self.pipeline = pipeline
        self.store = store
        self.quota = quota or DailyGenerationQuota(pipeline.settings.daily_generation_limit)
        self.audit_client = audit_client or AuditLogClient(None)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[PipelineSettings] = None,
        client: Optional[GenerativeClient] = None,
    ) -> "LeadGenerationService":
        settings = settings or load_settings()
        client = client or GeminiClient(temperature=settings.temperature)
        return cls(
            pipeline=LeadGenerationPipeline(client, settings),
            store=LeadStore(settings.database_path),
            quota=DailyGenerationQuota(settings.daily_generation_limit),
            audit_client=AuditLogClient(settings.audit_log_url, timeout=settings.audit_log_timeout),
        )

    async def generate(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> GenerationOutcome:
        """
        Run one generation and persist its results.

        Raises:
            LeadGenerationError: always a subclass with a displayable message;
                unexpected exceptions are wrapped in the base class.
        """
        self.quota.check_and_increment()

        saved_names = self.store.business_names()
        if saved_names:
            # validated again so the merged list is deduplicated
            request = GenerationRequest.model_validate({
                **request.model_dump(),
                "excluded_businesses": request.excluded_businesses + saved_names,
            })

        try:
            outcome = await self.pipeline.generate_leads(request, on_progress)
        except LeadGenerationError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error while generating leads: {e}")
            raise LeadGenerationError() from e

        if outcome.leads:
            outcome = outcome.model_copy(update={"leads": self.store.upsert_many(outcome.leads)})

        self.store.add_audit_log(request, len(outcome.leads))
        self.audit_client.log_generation(request, len(outcome.leads))
        return outcome
