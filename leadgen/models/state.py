from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

NOT_FOUND = "Not Found"


def is_not_found(value: Any) -> bool:
    """True for the "searched but not found" sentinel, blanks and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip() or value.strip().lower() == NOT_FOUND.lower()
    if isinstance(value, (list, tuple)):
        return not any(not is_not_found(item) for item in value)
    return False


def _as_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.replace(";", ",").split(",")
    elif not isinstance(value, (list, tuple)):
        # a lone number or other scalar
        value = [value]
    return [str(item).strip() for item in value if not is_not_found(str(item))]


class CamelModel(BaseModel):
    """Model JSON uses camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GrowthStage(str, Enum):
    ANY = "Any"
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    ENTERPRISE = "Enterprise"


class SizeCategory(str, Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    ENTERPRISE = "Enterprise"


class SenderProfile(CamelModel):
    """
    Identity of the person sending the outreach. Every field is optional and
    only the supplied ones end up in the drafted signature.
    """
    name: Optional[str] = None
    title: Optional[str] = None
    company_name: Optional[str] = None
    company_website: Optional[str] = None
    company_phone: Optional[str] = None
    company_email: Optional[str] = None

    def supplied_fields(self) -> List[tuple]:
        labels = [
            ("Name", self.name),
            ("Title", self.title),
            ("Company", self.company_name),
            ("Website", self.company_website),
            ("Phone", self.company_phone),
            ("Email", self.company_email),
        ]
        return [(label, value.strip()) for label, value in labels if value and value.strip()]


class MessageTemplates(CamelModel):
    email: Optional[str] = None
    whatsapp: Optional[str] = None


class GenerationRequest(CamelModel):
    """The search criteria and outreach settings for one generation run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    location: str = Field(min_length=1, description="City, region or country to search in")
    keywords: str = Field("", description="Industry keywords, empty means any industry")
    count: int = Field(5, ge=1, le=50, description="How many companies to discover")
    excluded_businesses: List[str] = Field(default_factory=list)
    growth_stage: GrowthStage = GrowthStage.ANY
    language: str = "English"
    custom_research: Optional[str] = None
    custom_research_focus: Optional[str] = None
    sender: SenderProfile = Field(default_factory=SenderProfile)
    templates: MessageTemplates = Field(default_factory=MessageTemplates)

    @field_validator("excluded_businesses", mode="before")
    @classmethod
    def dedupe_exclusions(cls, v):
        seen = set()
        names = []
        for name in v or []:
            cleaned = str(name).strip()
            if cleaned and cleaned.lower() not in seen:
                seen.add(cleaned.lower())
                names.append(cleaned)
        return names


class ContactPerson(CamelModel):
    name: str = NOT_FOUND
    title: str = ""


class DraftMessage(CamelModel):
    language: str = ""
    tone: str = ""
    subject: Optional[str] = None
    body: str = ""


class Lead(CamelModel):
    """
    A researched company with contact data and drafted outreach. Fields the
    model searched for but could not find hold "Not Found" or an empty list.
    """
    id: Optional[str] = None
    business_name: str = NOT_FOUND
    official_website: str = NOT_FOUND
    instagram_handle: str = NOT_FOUND
    contact_email: List[str] = Field(default_factory=list)
    contact_phone: List[str] = Field(default_factory=list)
    contact_whatsapp: str = Field(NOT_FOUND, alias="contactWhatsApp")
    contact_person: ContactPerson = Field(default_factory=ContactPerson)
    company_description: str = NOT_FOUND
    estimated_employee_count: str = NOT_FOUND
    inferred_primary_language: str = NOT_FOUND
    company_size_category: str = NOT_FOUND
    key_strengths_it: List[str] = Field(default_factory=list, alias="keyStrengthsIT")
    key_weaknesses_it: List[str] = Field(default_factory=list, alias="keyWeaknessesIT")
    custom_research_results: str = NOT_FOUND
    custom_research_focus: Optional[str] = None
    draft_email: DraftMessage = Field(default_factory=DraftMessage)
    draft_whatsapp: DraftMessage = Field(default_factory=DraftMessage, alias="draftWhatsApp")

    @field_validator("contact_email", "contact_phone", "key_strengths_it", "key_weaknesses_it", mode="before")
    @classmethod
    def coerce_list(cls, v):
        return _as_text_list(v)

    @field_validator(
        "official_website",
        "instagram_handle",
        "contact_whatsapp",
        "company_description",
        "estimated_employee_count",
        "inferred_primary_language",
        "custom_research_results",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return NOT_FOUND
        return str(v).strip()

    @field_validator("contact_person", mode="before")
    @classmethod
    def coerce_contact_person(cls, v):
        if v is None or isinstance(v, str):
            return {"name": v.strip() if v and v.strip() else NOT_FOUND, "title": ""}
        return v

    @field_validator("company_size_category", mode="before")
    @classmethod
    def normalise_size(cls, v):
        for category in SizeCategory:
            if isinstance(v, str) and v.strip().lower() == category.value.lower():
                return category.value
        return NOT_FOUND

    @property
    def storage_key(self) -> str:
        return self.id or f"{self.business_name}-{self.official_website}"

    def has_website(self) -> bool:
        return not is_not_found(self.official_website)


class LeadEnvelope(CamelModel):
    leads: List[Lead] = Field(default_factory=list)


class ValidationCorrection(CamelModel):
    """What the validation call returns; every correction is optional."""

    is_correct: Optional[bool] = None
    corrected_website: Optional[str] = None
    corrected_emails: Optional[List[str]] = None
    corrected_phones: Optional[List[str]] = None
    corrected_whatsapp: Optional[str] = Field(None, alias="correctedWhatsApp")
    corrected_instagram: Optional[str] = None

    @field_validator("corrected_emails", "corrected_phones", mode="before")
    @classmethod
    def coerce_list(cls, v):
        if v is None:
            return None
        return _as_text_list(v)


class ProgressUpdate(BaseModel):
    status: str
    progress: float = Field(ge=0, le=100)


class GenerationOutcome(BaseModel):
    discovered_companies: List[str] = Field(default_factory=list)
    leads: List[Lead] = Field(default_factory=list)


class PipelineStage(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    RESEARCHING = "researching"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


class PipelineState(BaseModel):
    """
    The overall state of one generation run as it moves through the graph.
    """
    request: GenerationRequest
    stage: PipelineStage = PipelineStage.IDLE
    company_names: List[str] = Field(default_factory=list)
    researched: List[Optional[Lead]] = Field(default_factory=list)
    leads: List[Lead] = Field(default_factory=list)
