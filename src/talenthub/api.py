#!/usr/bin/env python3
"""
TalentHub API

This FastAPI service exposes candidate search, analytics reports and the
subscription plan table.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from talenthub.config import settings
from talenthub.db.repository import DatabaseError, ImportResult, TalentHubDatabase
from talenthub.logging_config import log_structured, setup_logging
from talenthub.models.analytics_models import ReportResult
from talenthub.models.search_models import FilterParams, SearchResult, SearchType
from talenthub.services.report_service import ReportService
from talenthub.services.search_service import (
    FeatureNotAvailableError,
    LimitExceededError,
    SearchService,
)
from talenthub.subscription import SUBSCRIPTION_TIERS, format_price

# Load environment variables
load_dotenv()

logger = setup_logging("talenthub")


class SearchRequest(BaseModel):
    user_id: str
    filters: FilterParams = Field(default_factory=FilterParams)
    search_type: SearchType = SearchType.CANDIDATES


class SaveSearchRequest(SearchRequest):
    last_results_count: int = 0


def create_app(db_path: Optional[str] = None) -> FastAPI:
    """Build the application; ``db_path`` overrides the configured database."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the database and wire the services."""
        db = await TalentHubDatabase(db_path or settings.db_path).ainit()
        app.state.db = db
        app.state.search_service = SearchService(db)
        app.state.report_service = ReportService(db)
        logger.info("TalentHub API started")
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(
        title="TalentHub API",
        description="Candidate search, ranking and recruitment analytics",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint for Docker healthcheck."""
        if await request.app.state.db.check_connection():
            return {"status": "healthy", "database": "connected"}
        return {"status": "unhealthy", "database": "disconnected"}

    @app.get("/plans")
    async def list_plans() -> List[Dict[str, Any]]:
        return [
            {
                "id": tier.id,
                "name": tier.name,
                "price": format_price(tier.price_in_cents, tier.currency),
                "search_features": tier.search_features.model_dump(),
                "analytics_access": tier.analytics_access.model_dump(),
                "limits": tier.limits.model_dump(),
            }
            for tier in SUBSCRIPTION_TIERS.values()
        ]

    @app.post("/search", response_model=SearchResult)
    async def search(body: SearchRequest, request: Request):
        service: SearchService = request.app.state.search_service
        result = await service.search(body.user_id, body.filters, search_type=body.search_type)
        if result is None:
            # Superseded by a newer request from the same tenant
            raise HTTPException(status_code=409, detail="Search superseded by a newer request")
        return result

    @app.post("/searches/saved")
    async def save_search(body: SaveSearchRequest, request: Request):
        service: SearchService = request.app.state.search_service
        try:
            capabilities = await service.capabilities_for(body.user_id)
            saved = await service.save_search(
                body.user_id,
                body.filters,
                capabilities,
                search_type=body.search_type,
                last_results_count=body.last_results_count,
            )
        except FeatureNotAvailableError as e:
            raise HTTPException(status_code=403, detail=str(e))
        except LimitExceededError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except DatabaseError as e:
            logger.error(f"Error saving search: {e}")
            raise HTTPException(status_code=500, detail="Failed to save search")
        return saved

    @app.get("/reports/{user_id}", response_model=ReportResult)
    async def get_report(user_id: str, request: Request, range: str = "30"):
        service: ReportService = request.app.state.report_service
        result = await service.build(user_id, range)
        if result is None:
            raise HTTPException(status_code=409, detail="Report superseded by a newer request")
        if result.error:
            raise HTTPException(status_code=500, detail=result.error)
        return result

    @app.post("/candidates/import/{user_id}", response_model=ImportResult)
    async def import_candidates(user_id: str, rows: List[Dict[str, Any]], request: Request):
        try:
            result = await request.app.state.db.import_candidates(user_id, rows)
        except DatabaseError as e:
            logger.error(f"Error importing candidates: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        log_structured(
            logger, "info", "Candidate import finished", {"success": result.success, "errors": len(result.errors)}
        )
        return result

    return app


app = create_app()


def main():
    uvicorn.run("talenthub.api:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
