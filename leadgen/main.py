import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from leadgen.errors import (
    ConfigurationError,
    LeadGenerationError,
    LeadImportError,
    NoResultsError,
    QuotaExceededError,
    ServiceRefusal,
    ServiceUnavailable,
)
from leadgen.io import export_leads_csv, import_leads_csv
from leadgen.models.state import GenerationRequest, ProgressUpdate
from leadgen.service import LeadGenerationService

logger = logging.getLogger(__name__)

ERROR_STATUS = [
    (QuotaExceededError, 429),
    (NoResultsError, 400),
    (ServiceRefusal, 400),
    (LeadImportError, 400),
    (ServiceUnavailable, 503),
    (ConfigurationError, 503),
]


def status_for(error: LeadGenerationError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 502


def create_app(service: Optional[LeadGenerationService] = None) -> FastAPI:
    """
    Build the HTTP API. Without ``service`` one is created from the settings on
    the first request that needs it.
    """
    app = FastAPI(title="Lead Generator")
    app.state.service = service

    def get_service() -> LeadGenerationService:
        if app.state.service is None:
            app.state.service = LeadGenerationService.from_settings()
        return app.state.service

    @app.exception_handler(LeadGenerationError)
    async def lead_generation_error_handler(request: Request, exc: LeadGenerationError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_for(exc), content={"detail": exc.message})

    @app.get("/")
    async def root():
        return {"message": "AI Lead Generator"}

    @app.post("/leads/generate")
    async def generate_leads(body: GenerationRequest, service: LeadGenerationService = Depends(get_service)):
        """Run the full pipeline and return the leads plus every progress update emitted."""
        updates = []

        def on_progress(update: ProgressUpdate):
            updates.append(update.model_dump())

        outcome = await service.generate(body, on_progress)
        return {
            "discoveredCompanies": outcome.discovered_companies,
            "leads": [lead.model_dump(mode="json", by_alias=True) for lead in outcome.leads],
            "progress": updates,
        }

    @app.get("/leads")
    async def get_saved_leads(service: LeadGenerationService = Depends(get_service)):
        return [lead.model_dump(mode="json", by_alias=True) for lead in service.store.get_all()]

    @app.delete("/leads")
    async def clear_saved_leads(service: LeadGenerationService = Depends(get_service)):
        return {"deleted": service.store.clear()}

    @app.get("/leads/export")
    async def export_leads(service: LeadGenerationService = Depends(get_service)):
        filename = f"leads_{date.today().isoformat()}.csv"
        return Response(
            content=export_leads_csv(service.store.get_all()),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/leads/import")
    async def import_leads(request: Request, service: LeadGenerationService = Depends(get_service)):
        """Import leads from a CSV request body."""
        text = (await request.body()).decode("utf-8-sig", errors="replace")
        leads = service.store.upsert_many(import_leads_csv(text))
        return {"imported": len(leads)}

    @app.get("/audit-logs")
    async def get_audit_logs(service: LeadGenerationService = Depends(get_service)):
        return service.store.get_audit_logs()

    return app
