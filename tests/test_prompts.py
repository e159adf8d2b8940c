from leadgen.models.prompts import (
    build_detail_prompt,
    build_discovery_prompt,
    build_validation_prompt,
)
from leadgen.models.state import GenerationRequest, Lead


def make_request(**kwargs):
    base = {"location": "Austin", "keywords": "logistics", "count": 2}
    base.update(kwargs)
    return GenerationRequest(**base)


def test_discovery_prompt_basics():
    prompt = build_discovery_prompt(make_request())
    assert "Austin" in prompt
    assert "logistics" in prompt
    assert "companyNames" in prompt
    assert "Target Company Growth Stage" not in prompt
    assert "Exclude these businesses" not in prompt


def test_discovery_prompt_growth_stage_and_exclusions():
    prompt = build_discovery_prompt(make_request(
        growth_stage="Medium",
        excluded_businesses=["Acme Logistics", "acme logistics", "Lonestar Freight"],
    ))
    assert 'Target Company Growth Stage: "Medium"' in prompt
    assert "Exclude these businesses" in prompt
    assert prompt.count("Acme Logistics") == 1
    assert "Lonestar Freight" in prompt


def test_detail_prompt_without_sender_has_no_signature():
    prompt = build_detail_prompt(make_request(), "Acme Logistics")
    assert 'FOR THE COMPANY: "Acme Logistics"' in prompt
    assert "Do NOT add any signature" in prompt
    assert "Not Found" in prompt
    assert "CUSTOM DEEP DIVE" not in prompt
    assert "Email Generation (Default)" in prompt
    assert "WhatsApp Message Generation (Default)" in prompt


def test_detail_prompt_uses_only_supplied_sender_fields():
    request = make_request(sender={"name": "Harris", "companyName": "RICE AI", "title": "  "})
    prompt = build_detail_prompt(request, "Acme Logistics")
    assert "- Name: Harris" in prompt
    assert "- Company: RICE AI" in prompt
    assert "- Title:" not in prompt
    assert "- Phone:" not in prompt
    assert "Do NOT add any signature" not in prompt


def test_detail_prompt_templates_and_custom_research():
    request = make_request(
        language="Indonesian",
        custom_research="Do they use a cloud ERP?",
        templates={"email": "Hello {{businessName}}!", "whatsapp": "Hi {{contactPerson.name}}"},
    )
    prompt = build_detail_prompt(request, "Acme Logistics")
    assert "Indonesian" in prompt
    assert "Do they use a cloud ERP?" in prompt
    assert "Email Generation (User Template)" in prompt
    assert '"Hello {{businessName}}!"' in prompt
    assert "WhatsApp Message Generation (User Template)" in prompt
    assert "Email Generation (Default)" not in prompt


def test_validation_prompt_lists_known_values():
    lead = Lead(
        business_name="Acme Logistics",
        official_website="https://acme.com",
        contact_email=["info@acme.com", "sales@acme.com"],
    )
    prompt = build_validation_prompt(lead)
    assert "Acme Logistics" in prompt
    assert "https://acme.com" in prompt
    assert "info@acme.com, sales@acme.com" in prompt
    assert "correctedWebsite" in prompt


def test_discovery_prompt_bans_directories_and_social_pages():
    prompt = build_discovery_prompt(make_request())
    assert "Do NOT include business directories" in prompt
    assert "marketplaces" in prompt
    assert "only exist as a social-media page" in prompt


def test_default_email_branches_on_weaknesses():
    prompt = build_detail_prompt(make_request(), "Acme Logistics")
    assert "the email MUST reference the most significant weakness" in prompt
    assert "If AND ONLY IF the 'keyWeaknessesIT' list is empty" in prompt
    assert "free, no-obligation assessment" in prompt


def test_detail_prompt_forbids_fabrication_and_citations():
    prompt = build_detail_prompt(make_request(), "Acme Logistics")
    assert "NEVER fabricate contact data." in prompt
    assert "REMOVE ALL CITATION MARKERS" in prompt


def test_validation_prompt_rules():
    prompt = build_validation_prompt(Lead(business_name="Acme Logistics", official_website="https://acme.com"))
    assert "return the known value unchanged. NEVER invent a value." in prompt
    assert "Cross-reference the domain of the contact emails with the proposed website's domain" in prompt
    assert "A directory, listing site, marketplace or social-media page is NEVER the official website." in prompt
