import asyncio
import json
import re
from typing import Dict, List, Optional

import pytest

from leadgen.config import PipelineSettings, ResearchPolicy, RetryPolicy
from leadgen.database import LeadStore
from leadgen.llm_client import ModelRequest, ModelResponse
from leadgen.pipeline import LeadGenerationPipeline

_DETAIL_COMPANY = re.compile(r'FOR THE COMPANY: "([^"]+)"')
_VALIDATION_COMPANY = re.compile(r'\*\*Company to Verify:\*\* "([^"]+)"')


def lead_payload(name: str, **overrides) -> dict:
    slug = re.sub(r"[^a-z0-9]+", "", name.lower())
    lead = {
        "businessName": name,
        "officialWebsite": f"https://{slug}.com",
        "instagramHandle": f"@{slug}",
        "contactPerson": {"name": "Jane Doe", "title": "Owner"},
        "contactEmail": [f"info@{slug}.com"],
        "contactPhone": ["+1 512 555 0100"],
        "contactWhatsApp": "Not Found",
        "companyDescription": f"{name} is a test company.",
        "estimatedEmployeeCount": "25",
        "inferredPrimaryLanguage": "English",
        "companySizeCategory": "Small",
        "keyStrengthsIT": ["Modern website"],
        "keyWeaknessesIT": [],
        "customResearchResults": "Not Found",
        "draftEmail": {"language": "English", "tone": "friendly", "subject": "Hello", "body": "Hi there"},
        "draftWhatsApp": {"language": "English", "tone": "brief", "body": "Hi!"},
    }
    lead.update(overrides)
    return {"leads": [lead]}


def fenced(payload) -> str:
    return f"Here is what I found:\n```json\n{json.dumps(payload)}\n```"


class FakeGenerativeClient:
    """
    Scripted stand-in for Gemini. Responses are routed by prompt type and, for
    detail and validation prompts, by company name. Each script is a list
    consumed in order whose last entry repeats; entries are response text, a
    ModelResponse or an exception to raise.
    """

    def __init__(self, company_names: Optional[List[str]] = None):
        self.discovery: List = [fenced({"companyNames": company_names or []})]
        self.details: Dict[str, List] = {}
        self.validations: Dict[str, List] = {}
        self.calls: List[tuple] = []
        self.prompts: List[str] = []

    @staticmethod
    def classify(prompt: str):
        if "data validation specialist" in prompt:
            return "validation", _VALIDATION_COMPANY.search(prompt).group(1)
        if "business research assistant" in prompt:
            return "discovery", None
        return "detail", _DETAIL_COMPANY.search(prompt).group(1)

    def _script(self, kind: str, company: Optional[str]) -> List:
        if kind == "discovery":
            return self.discovery
        if kind == "detail":
            return self.details.setdefault(company, [fenced(lead_payload(company))])
        return self.validations.setdefault(company, ['{"isCorrect": true}'])

    async def complete(self, request: ModelRequest) -> ModelResponse:
        kind, company = self.classify(request.prompt)
        self.calls.append((kind, company))
        self.prompts.append(request.prompt)
        # let concurrent research tasks interleave
        await asyncio.sleep(0)

        script = self._script(kind, company)
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, ModelResponse):
            return item
        return ModelResponse(text=item, finish_reason="STOP")

    def count(self, kind: str, company: Optional[str] = None) -> int:
        return sum(1 for call in self.calls if call[0] == kind and (company is None or call[1] == company))


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def settings(tmp_path):
    return PipelineSettings(
        retry=RetryPolicy(),
        research=ResearchPolicy(),
        database_path=str(tmp_path / "leads.db"),
    )


@pytest.fixture
def make_pipeline(settings, fake_sleep):
    def factory(client: FakeGenerativeClient) -> LeadGenerationPipeline:
        return LeadGenerationPipeline(client, settings, sleep=fake_sleep)
    return factory


@pytest.fixture
def store(tmp_path):
    lead_store = LeadStore(tmp_path / "leads.db")
    yield lead_store
    lead_store.close()
