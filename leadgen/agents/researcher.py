import logging

from pydantic import ValidationError

from leadgen.errors import SchemaMismatch
from leadgen.llm_client import ModelRequest
from leadgen.models.prompts import build_detail_prompt
from leadgen.models.state import GenerationRequest, Lead, LeadEnvelope, is_not_found
from leadgen.retry import ResilientGenerator

logger = logging.getLogger(__name__)


async def research_company(
    generator: ResilientGenerator,
    request: GenerationRequest,
    company_name: str,
    *,
    model: str,
    use_search: bool = True,
    retries: int = 2,
) -> Lead:
    """
    Deep-research one company and draft its outreach messages.

    Returns the first lead the model produced, always under ``company_name``.
    Raises on any failure; the caller decides whether a failed company is
    fatal.
    """
    prompt = build_detail_prompt(request, company_name)
    payload = await generator.generate_json(
        ModelRequest(prompt=prompt, model=model, use_search=use_search),
        required_list_field="leads",
        retries=retries,
    )

    try:
        envelope = LeadEnvelope.model_validate(payload)
    except ValidationError as e:
        raise SchemaMismatch(f"Lead for '{company_name}' did not match the expected structure: {e}") from e

    if not envelope.leads:
        raise SchemaMismatch(f"The AI returned no lead for '{company_name}'")

    lead = envelope.leads[0]
    updates = {}
    # the lead stays keyed by the name discovery produced
    if lead.business_name != company_name:
        if not is_not_found(lead.business_name):
            logger.info(f"Research: model renamed '{company_name}' to '{lead.business_name}', "
                        f"keeping the discovered name")
        updates["business_name"] = company_name
    if request.custom_research_focus:
        updates["custom_research_focus"] = request.custom_research_focus
    if updates:
        lead = lead.model_copy(update=updates)
    return lead
