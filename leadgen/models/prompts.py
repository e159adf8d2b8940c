"""
Prompt builders for the three model calls of a generation run.

Which request fields change which instruction block:

=============================  =====================================================
Field                          Effect
=============================  =====================================================
location, keywords, count      discovery criteria (keywords default to "any")
growth_stage                   discovery "growth stage" line, omitted for ``Any``
excluded_businesses            discovery exclusion line, omitted when empty
language                       detail research and drafting language
custom_research                detail "custom deep dive" block, omitted when empty
sender (any field)             detail signature block: none supplied means "no
                               signature", otherwise only the supplied fields
templates.email                detail email block: placeholder substitution
                               instead of the weakness-driven default
templates.whatsapp             detail WhatsApp block: same, for the chat message
lead website/emails/phones     validation evidence
=============================  =====================================================

All builders are pure functions.
"""
from typing import List

from leadgen.models.state import NOT_FOUND, GenerationRequest, GrowthStage, Lead


def format_list(items: List[str]) -> str:
    """Format a list of items into a readable string."""
    if not items:
        return "None"
    return ", ".join(items)


DISCOVERY_PROMPT_TEMPLATE = """
You are a business research assistant. Your task is to find a list of exactly {count} company names that match the following criteria.
- Location: "{location}"
- Industry Keywords: "{keywords}"{growth_stage_instruction}{exclusion_instruction}

Use the Google Search tool to find them.
Only include real, currently operating businesses that have their own presence. Do NOT include business directories, listing or review aggregators, marketplaces, or businesses that only exist as a social-media page.

Your entire response MUST be a single JSON object with one key, "companyNames", which is an array of strings. Do not include any other text.

Example:
{{
    "companyNames": ["PT Example Corp", "Another Business Ltd", "Surabaya Tech Solutions"]
}}
"""


def build_discovery_prompt(request: GenerationRequest) -> str:
    growth_stage_instruction = ""
    if request.growth_stage != GrowthStage.ANY:
        growth_stage_instruction = f'\n- Target Company Growth Stage: "{request.growth_stage.value}"'

    exclusion_instruction = ""
    if request.excluded_businesses:
        exclusion_instruction = f"\n- CRITICAL: Exclude these businesses: {format_list(request.excluded_businesses)}"

    return DISCOVERY_PROMPT_TEMPLATE.format(
        count=request.count,
        location=request.location,
        keywords=request.keywords or "any",
        growth_stage_instruction=growth_stage_instruction,
        exclusion_instruction=exclusion_instruction,
    ).strip()


CUSTOM_RESEARCH_INSTRUCTION = """
**CUSTOM DEEP DIVE RESEARCH**:
In addition to standard information, you MUST perform a deep dive based on the following user request. Integrate the findings into 'keyStrengthsIT' or 'keyWeaknessesIT' as appropriate, and summarize them in the 'customResearchResults' field.
- Deep Dive Request: "{custom_research}"
"""

COMPANY_SIZE_INSTRUCTION = """
**COMPANY SIZE ASSESSMENT LOGIC**:
Categorize the company as one of "Small", "Medium", "Large" or "Enterprise", using the estimated employee count as the primary factor:
- **Small**: 1-50 employees.
- **Medium**: 51-500 employees.
- **Large**: 501-5000 employees.
- **Enterprise**: 5001+ employees.
"""

NO_SIGNATURE_INSTRUCTION = """
**Signature**: No sender details were provided. Do NOT add any signature, sign-off name, title, company name or contact details to the messages, and do NOT use placeholders such as "[Your Name]".
"""

SIGNATURE_INSTRUCTION = """
**Signature**: Sign the email using ONLY the following sender details, copied verbatim:
{sender_lines}
Do NOT invent, guess or add any sender detail that is not listed above (no made-up names, titles, phone numbers, emails or websites).
"""

EMAIL_TEMPLATE_INSTRUCTION = """
* **Email Generation (User Template)**:
    * You MUST use the user-provided template below.
    * Replace placeholders such as {{{{businessName}}}}, {{{{contactPerson.name}}}} and {{{{keyWeaknessesIT[0]}}}} with the researched values. If a value was not found, use a natural generic alternative (e.g., "your company" for {{{{businessName}}}}).
    * Follow the signature rules above.
    * **Template**: "{template}"
"""

EMAIL_DEFAULT_INSTRUCTION = """
* **Email Generation (Default)**:
    * Address the email to the 'contactPerson' if found. Otherwise, use a general greeting.
    * **CRITICAL LOGIC**: First, check the 'keyWeaknessesIT' list. If you found one or more weaknesses, the email MUST reference the most significant weakness as a talking point to demonstrate your research.
    * **If AND ONLY IF the 'keyWeaknessesIT' list is empty**, write a general but still personalized introduction: mention the company by name, briefly introduce our services, and offer a free, no-obligation assessment as a value proposition.
    * Follow the signature rules above.
"""

WHATSAPP_TEMPLATE_INSTRUCTION = """
* **WhatsApp Message Generation (User Template)**:
    * You MUST use the user-provided template below. It must stay very short and conversational.
    * Replace placeholders such as {{{{businessName}}}}, {{{{contactPerson.name}}}} and {{{{keyWeaknessesIT[0]}}}}.
    * Do NOT use a formal signature.
    * **Template**: "{template}"
"""

WHATSAPP_DEFAULT_INSTRUCTION = """
* **WhatsApp Message Generation (Default)**:
    * The message MUST be very short, conversational and friendly. Do NOT use a formal email structure or signature block.
    * If 'keyWeaknessesIT' is not empty, mention the most significant weakness; otherwise mention the value we could bring to the company.
    * **Example (English)**: `Hi John, this is Harris from RICE AI. Noticed your site could use a mobile performance boost. Open to a quick chat about it? Thanks.`
    * Keep it under 3 sentences.
"""

DETAIL_PROMPT_TEMPLATE = """
You are a world-class research assistant for a B2B outreach team. Your goal is to perform a deep-dive investigation on a single company, "{company_name}", using Google Search, and draft personalized outreach messages.

Follow this multi-phase process FOR THE COMPANY: "{company_name}".

**Phase 1: Deep Dive Research (Using Google Search Tool)**
1. Use multiple, targeted queries ('{company_name} official website', '{company_name} contact', etc.) to find: officialWebsite, instagramHandle, contactEmail, contactPhone, contactWhatsApp, companyDescription, estimatedEmployeeCount, keyStrengthsIT, keyWeaknessesIT, inferredPrimaryLanguage.
2. All text output must be in the target language: **{language}**.
{custom_research_instruction}
**Phase 2: Key Contact Person Research**
1. Find a key decision-maker (Owner, CEO, IT Manager) for "{company_name}".
2. Extract their full 'name' and 'title'.

**Phase 3: Company Profiling & Size Assessment**
{company_size_instruction}
**Phase 4: Personalized Outreach Generation in {language}**
{signature_instruction}
{email_instruction}
{whatsapp_instruction}
**Phase 5: Data Integrity Rules (MANDATORY)**
- NEVER fabricate contact data. Only report emails, phone numbers, WhatsApp numbers, handles and people you actually found.
- If a text field cannot be found, use the exact value "Not Found". If a list field has no findings, use an empty list [].
- REMOVE ALL CITATION MARKERS (e.g., [1], [2]) from every field.

**Phase 6: Structured JSON Output**
Your entire response MUST be only a single JSON object. The root must be a "leads" key containing an array with a SINGLE business lead object.

**Example JSON Structure:**
```json
{{
  "leads": [
    {{
      "businessName": "string",
      "officialWebsite": "string (URL or 'Not Found')",
      "instagramHandle": "string (handle or 'Not Found')",
      "contactPerson": {{
        "name": "string (e.g., 'Budi Santoso' or 'Not Found')",
        "title": "string (e.g., 'Owner' or '')"
      }},
      "contactEmail": ["string (email)"],
      "contactPhone": ["string (phone number)"],
      "contactWhatsApp": "string (e.g., '+628123456789' or 'Not Found')",
      "companyDescription": "string",
      "estimatedEmployeeCount": "string",
      "inferredPrimaryLanguage": "string",
      "companySizeCategory": "string (one of 'Small', 'Medium', 'Large', 'Enterprise')",
      "keyStrengthsIT": ["string"],
      "keyWeaknessesIT": ["string"],
      "customResearchResults": "string (summary of the custom research, or 'Not Found')",
      "draftEmail": {{
        "language": "string",
        "tone": "string",
        "subject": "string",
        "body": "string"
      }},
      "draftWhatsApp": {{
        "language": "string",
        "tone": "string ('conversational', 'brief')",
        "body": "string (a very short message)"
      }}
    }}
  ]
}}
```
"""


def build_signature_instruction(request: GenerationRequest) -> str:
    supplied = request.sender.supplied_fields()
    if not supplied:
        return NO_SIGNATURE_INSTRUCTION.strip()
    sender_lines = "\n".join(f"- {label}: {value}" for label, value in supplied)
    return SIGNATURE_INSTRUCTION.format(sender_lines=sender_lines).strip()


def build_detail_prompt(request: GenerationRequest, company_name: str) -> str:
    custom_research_instruction = ""
    if request.custom_research and request.custom_research.strip():
        custom_research_instruction = CUSTOM_RESEARCH_INSTRUCTION.format(
            custom_research=request.custom_research.strip()
        )

    if request.templates.email and request.templates.email.strip():
        email_instruction = EMAIL_TEMPLATE_INSTRUCTION.format(template=request.templates.email.strip())
    else:
        email_instruction = EMAIL_DEFAULT_INSTRUCTION

    if request.templates.whatsapp and request.templates.whatsapp.strip():
        whatsapp_instruction = WHATSAPP_TEMPLATE_INSTRUCTION.format(template=request.templates.whatsapp.strip())
    else:
        whatsapp_instruction = WHATSAPP_DEFAULT_INSTRUCTION

    return DETAIL_PROMPT_TEMPLATE.format(
        company_name=company_name,
        language=request.language,
        custom_research_instruction=custom_research_instruction,
        company_size_instruction=COMPANY_SIZE_INSTRUCTION,
        signature_instruction=build_signature_instruction(request),
        email_instruction=email_instruction,
        whatsapp_instruction=whatsapp_instruction,
    ).strip()


VALIDATION_PROMPT_TEMPLATE = """
You are a meticulous data validation specialist. Your task is to verify that the website and contact details recorded for a company are correct, using the company's own official website as the source of truth.

**Company to Verify:** "{business_name}"
**Proposed Website:** "{website}"
**Known Contact Emails:** "{emails}"
**Known Contact Phones:** "{phones}"
**Known WhatsApp Number:** "{whatsapp}"
**Known Instagram Handle:** "{instagram}"

**Verification Process:**
1. Use Google Search to investigate the company and open the proposed website.
2. **CRITICAL:** Cross-reference the domain of the contact emails with the proposed website's domain. A match is the strongest positive signal.
3. Check whether the known phone numbers are listed on the proposed website.
4. A directory, listing site, marketplace or social-media page is NEVER the official website. If the proposed website is one of these, or belongs to a different company, find the correct official website.
5. Correct any email, phone, WhatsApp number or Instagram handle that the official website clearly contradicts.

**Output Requirement:**
Your entire response MUST be a single JSON object with these keys:
- "isCorrect": boolean, whether the proposed website is the correct official website.
- "correctedWebsite": string, the official website URL.
- "correctedEmails": array of strings.
- "correctedPhones": array of strings.
- "correctedWhatsApp": string.
- "correctedInstagram": string.

**CRITICAL RULE:** For any field where you do not have a high-confidence correction, return the known value unchanged. NEVER invent a value. If you cannot find the correct website, return "Not Found" for "correctedWebsite".

**Example Response:**
{{
    "isCorrect": false,
    "correctedWebsite": "https://www.the-actual-official-site.com",
    "correctedEmails": ["info@the-actual-official-site.com"],
    "correctedPhones": ["+62 21 555 0101"],
    "correctedWhatsApp": "Not Found",
    "correctedInstagram": "Not Found"
}}
"""


def build_validation_prompt(lead: Lead) -> str:
    return VALIDATION_PROMPT_TEMPLATE.format(
        business_name=lead.business_name,
        website=lead.official_website,
        emails=", ".join(lead.contact_email) or "None",
        phones=", ".join(lead.contact_phone) or "None",
        whatsapp=lead.contact_whatsapp or NOT_FOUND,
        instagram=lead.instagram_handle or NOT_FOUND,
    ).strip()
