import logging
from typing import Iterable, List, Optional

from leadgen.errors import NoResultsError
from leadgen.llm_client import ModelRequest
from leadgen.models.prompts import build_discovery_prompt
from leadgen.models.state import GenerationRequest
from leadgen.retry import ResilientGenerator, RetryNotifier

logger = logging.getLogger(__name__)


def clean_company_names(names: Iterable[str], excluded: Iterable[str] = ()) -> List[str]:
    """
    Strip, deduplicate (case-insensitively) and drop excluded names, keeping
    the model's order.
    """
    seen = {name.strip().lower() for name in excluded}
    cleaned = []
    for name in names:
        if not isinstance(name, str) or not name.strip():
            continue
        key = name.strip().lower()
        if key in seen:
            logger.info(f"Discovery: dropping duplicate or excluded company '{name.strip()}'")
            continue
        seen.add(key)
        cleaned.append(name.strip())
    return cleaned


async def discover_companies(
    generator: ResilientGenerator,
    request: GenerationRequest,
    *,
    model: str,
    use_search: bool = True,
    on_retry: Optional[RetryNotifier] = None,
) -> List[str]:
    """
    Ask the model for candidate company names matching the request.

    Raises:
        NoResultsError: the model found no usable company names.
        ServiceRefusal, FormatTroubleError: propagated from the retrier.
    """
    prompt = build_discovery_prompt(request)
    payload = await generator.generate_json(
        ModelRequest(prompt=prompt, model=model, use_search=use_search),
        required_list_field="companyNames",
        on_retry=on_retry,
    )
    names = clean_company_names(payload["companyNames"], request.excluded_businesses)

    if not names:
        raise NoResultsError()

    logger.info(f"Discovery: found {len(names)} companies in '{request.location}'")
    return names
