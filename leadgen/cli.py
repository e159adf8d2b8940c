import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from leadgen.config import load_sender_profile, load_settings
from leadgen.database import LeadStore
from leadgen.errors import LeadGenerationError
from leadgen.io import export_leads_csv, import_leads_csv
from leadgen.models.state import GenerationRequest, GrowthStage, Lead, MessageTemplates, ProgressUpdate
from leadgen.service import LeadGenerationService

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="leadgen", description="AI-powered lead generation")
    parser.add_argument("--config", help="Path to a pipeline YAML config")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Discover and research new leads")
    generate.add_argument("--location", required=True)
    generate.add_argument("--keywords", default="")
    generate.add_argument("--count", type=int, default=5)
    generate.add_argument("--growth-stage", choices=[stage.value for stage in GrowthStage], default=GrowthStage.ANY.value)
    generate.add_argument("--language", default="English")
    generate.add_argument("--exclude", action="append", default=[], help="Business to skip; repeatable")
    generate.add_argument("--custom-research", help="Extra question to research for every company")
    generate.add_argument("--custom-research-focus", help="Short label for the custom research")
    generate.add_argument("--sender-config", help="Path to a sender YAML file")
    generate.add_argument("--email-template", type=Path, help="File with an email template")
    generate.add_argument("--whatsapp-template", type=Path, help="File with a WhatsApp template")
    generate.add_argument("--export", type=Path, help="Also write the new leads to this CSV file")

    subparsers.add_parser("saved", help="List saved leads")

    export = subparsers.add_parser("export", help="Export saved leads to CSV")
    export.add_argument("path", type=Path)

    import_ = subparsers.add_parser("import", help="Import leads from a CSV file")
    import_.add_argument("path", type=Path)

    clear = subparsers.add_parser("clear", help="Delete every saved lead")
    clear.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    return parser


def print_leads(leads: List[Lead], title: str):
    table = Table(title=title)
    table.add_column("Business", style="cyan")
    table.add_column("Website", style="green")
    table.add_column("Contact", style="yellow")
    table.add_column("Emails")
    table.add_column("Phones")
    table.add_column("Size", style="magenta")

    for lead in leads:
        contact = lead.contact_person.name
        if lead.contact_person.title:
            contact = f"{contact}\n{lead.contact_person.title}"
        table.add_row(
            lead.business_name,
            lead.official_website,
            contact,
            "\n".join(lead.contact_email) or "-",
            "\n".join(lead.contact_phone) or "-",
            lead.company_size_category,
        )
    console.print(table)


def _read_template(path: Optional[Path]) -> Optional[str]:
    return path.read_text(encoding="utf-8") if path else None


async def run_generate(args, service: LeadGenerationService) -> int:
    request = GenerationRequest(
        location=args.location,
        keywords=args.keywords,
        count=args.count,
        growth_stage=args.growth_stage,
        language=args.language,
        excluded_businesses=args.exclude,
        custom_research=args.custom_research,
        custom_research_focus=args.custom_research_focus,
        sender=load_sender_profile(args.sender_config),
        templates=MessageTemplates(
            email=_read_template(args.email_template),
            whatsapp=_read_template(args.whatsapp_template),
        ),
    )

    with tqdm(total=100, desc="Initializing...", bar_format="{l_bar}{bar}| {n:.0f}%") as bar:
        def on_progress(update: ProgressUpdate):
            bar.set_description(update.status)
            bar.update(update.progress - bar.n)

        outcome = await service.generate(request, on_progress)
        await service.audit_client.drain()

    print_leads(outcome.leads, f"Generated {len(outcome.leads)} leads")
    if args.export:
        args.export.write_text(export_leads_csv(outcome.leads), encoding="utf-8")
        console.print(f"Exported to {args.export}", style="green")
    return 0


def run_store_command(args, store: LeadStore) -> int:
    if args.command == "saved":
        print_leads(store.get_all(), "Saved leads")
    elif args.command == "export":
        leads = store.get_all()
        args.path.write_text(export_leads_csv(leads), encoding="utf-8")
        console.print(f"Exported {len(leads)} leads to {args.path}", style="green")
    elif args.command == "import":
        leads = store.upsert_many(import_leads_csv(args.path.read_text(encoding="utf-8-sig")))
        console.print(f"Imported {len(leads)} leads", style="green")
    elif args.command == "clear":
        if not args.yes and input("Delete every saved lead? [y/N] ").strip().lower() != "y":
            console.print("Nothing deleted.")
            return 1
        console.print(f"Deleted {store.clear()} saved leads", style="green")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        settings = load_settings(args.config)
        if args.command == "generate":
            return asyncio.run(run_generate(args, LeadGenerationService.from_settings(settings)))

        store = LeadStore(settings.database_path)
        try:
            return run_store_command(args, store)
        finally:
            store.close()
    except LeadGenerationError as e:
        console.print(f"❌ {e.message}", style="bold red")
        return 1


if __name__ == "__main__":
    sys.exit(main())
