"""
CSV export and import of saved leads.

Exports use display headers and a UTF-8 byte-order mark so spreadsheet tools
open them with the right encoding. Imports accept those headers as well as
camelCase keys.
"""
import csv
import logging
import time
from io import StringIO
from typing import List

import pandas as pd

from leadgen.errors import LeadImportError
from leadgen.models.state import NOT_FOUND, Lead

logger = logging.getLogger(__name__)

BOM = "\ufeff"

EXPORT_COLUMNS = [
    "Business Name",
    "Website",
    "Instagram",
    "Contact Name",
    "Contact Title",
    "Emails",
    "Phones",
    "WhatsApp Number",
    "Description",
]

# display header -> accepted fallback key
IMPORT_KEYS = {
    "Business Name": "businessName",
    "Website": "website",
    "Instagram": "instagram",
    "Contact Name": "contactName",
    "Contact Title": "contactTitle",
    "Emails": "emails",
    "Phones": "phones",
    "WhatsApp Number": "whatsappNumber",
    "Description": "description",
}


def _lead_row(lead: Lead) -> dict:
    return {
        "Business Name": lead.business_name,
        "Website": lead.official_website,
        "Instagram": lead.instagram_handle,
        "Contact Name": lead.contact_person.name,
        "Contact Title": lead.contact_person.title,
        "Emails": "; ".join(lead.contact_email),
        "Phones": "; ".join(lead.contact_phone),
        "WhatsApp Number": lead.contact_whatsapp,
        "Description": lead.company_description,
    }


def export_leads_csv(leads: List[Lead]) -> str:
    """Render leads as BOM-prefixed CSV text with every field quoted."""
    df = pd.DataFrame([_lead_row(lead) for lead in leads], columns=EXPORT_COLUMNS)
    return BOM + df.to_csv(index=False, quoting=csv.QUOTE_ALL)


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(";") if item.strip()]


def import_leads_csv(text: str) -> List[Lead]:
    """
    Parse CSV text into leads.

    Missing columns fall back to defaults and every imported lead gets a
    unique id so repeated imports never overwrite each other.

    Raises:
        LeadImportError: the text is empty, malformed or has no rows.
    """
    if not text or not text.strip():
        raise LeadImportError("The provided data is empty.")

    try:
        df = pd.read_csv(
            StringIO(text.lstrip(BOM)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        logger.error(f"CSV parsing failed: {e}")
        raise LeadImportError(f"Error parsing the provided data: {e}") from e

    if df.empty:
        raise LeadImportError("No valid lead data found in the provided text/file.")

    def field(row, header: str) -> str:
        for key in (header, IMPORT_KEYS[header]):
            value = str(row.get(key, "") or "").strip()
            if value:
                return value
        return ""

    stamp = int(time.time() * 1000)
    leads = []
    for index, row in enumerate(df.to_dict(orient="records")):
        business_name = field(row, "Business Name") or f"Imported Lead {index + 1}"
        website = field(row, "Website") or NOT_FOUND
        leads.append(Lead(
            id=f"{business_name}-{website}-{stamp}-{index}",
            business_name=business_name,
            official_website=website,
            instagram_handle=field(row, "Instagram"),
            contact_person={
                "name": field(row, "Contact Name") or NOT_FOUND,
                "title": field(row, "Contact Title"),
            },
            contact_email=_split(field(row, "Emails")),
            contact_phone=_split(field(row, "Phones")),
            contact_whatsapp=field(row, "WhatsApp Number"),
            company_description=field(row, "Description") or "Imported lead.",
        ))

    logger.info(f"Imported {len(leads)} leads from CSV")
    return leads
