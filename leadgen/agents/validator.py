import logging

from leadgen.llm_client import ModelRequest
from leadgen.models.prompts import build_validation_prompt
from leadgen.models.state import Lead, ValidationCorrection, is_not_found
from leadgen.retry import ResilientGenerator

logger = logging.getLogger(__name__)


def apply_correction(lead: Lead, correction: ValidationCorrection) -> Lead:
    """
    Return a copy of ``lead`` with the genuine corrections applied.

    A correction that is missing, blank, "Not Found" or an empty list never
    replaces the existing value.
    """
    candidates = {
        "official_website": correction.corrected_website,
        "contact_email": correction.corrected_emails,
        "contact_phone": correction.corrected_phones,
        "contact_whatsapp": correction.corrected_whatsapp,
        "instagram_handle": correction.corrected_instagram,
    }
    updates = {}
    for field_name, value in candidates.items():
        if is_not_found(value):
            continue
        if isinstance(value, str):
            value = value.strip()
        if value != getattr(lead, field_name):
            updates[field_name] = value

    if not updates:
        return lead

    for field_name, value in updates.items():
        logger.info(f"Validation: correcting {field_name} for '{lead.business_name}' "
                    f"from {getattr(lead, field_name)!r} to {value!r}")
    return lead.model_copy(update=updates)


async def validate_lead(
    generator: ResilientGenerator,
    lead: Lead,
    *,
    model: str,
    use_search: bool = True,
    retries: int = 2,
) -> Lead:
    """
    Cross-check a lead's website and contact fields against its own website.

    Never raises: on any failure the original lead is returned unchanged.
    """
    if not lead.has_website():
        logger.info(f"Validation: skipping '{lead.business_name}', no website to cross-reference")
        return lead

    try:
        payload = await generator.generate_json(
            ModelRequest(prompt=build_validation_prompt(lead), model=model, use_search=use_search),
            retries=retries,
        )
        correction = ValidationCorrection.model_validate(payload)
    except Exception as e:
        logger.error(f"Could not validate '{lead.business_name}', keeping original data: {e}")
        return lead

    validated = apply_correction(lead, correction)
    if validated is lead:
        logger.info(f"Validation: website '{lead.official_website}' confirmed for '{lead.business_name}'")
    return validated
