# =============================================================================
# app/routers/portfolio.py - Public Gallery Endpoints
# =============================================================================
# Read endpoints backing the public gallery and the admin editor:
# - initial portfolio payload for first render
# - vocabulary tables for editor dropdowns
# - master collections showcase
# - photography style galleries
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Query

from app.dependencies import PortfolioDep, ShowcaseDep, StyleDep
from core.models.portfolio import (
    InitialPortfolioPayload,
    MasterShotsResponse,
    PictureStylesResponse,
    VocabResponse,
)

router = APIRouter()


@router.get("/portfolio/initial", response_model=InitialPortfolioPayload)
async def get_initial_portfolio(portfolio: PortfolioDep):
    """
    Get everything the gallery renders on first load.

    Served from a short-lived cache; missing translations or locations
    degrade to empty maps rather than failing the page.
    """
    return await portfolio.get_initial_data()


@router.get("/admin/vocab", response_model=VocabResponse)
async def get_vocab(portfolio: PortfolioDep):
    """Categories, seasons and sections for the admin editor."""
    return await portfolio.fetch_vocab()


@router.get("/master-shots", response_model=MasterShotsResponse)
async def get_master_shots(
    showcase: ShowcaseDep,
    limit: Annotated[str | None, Query(description="Max shots (default 11, max 48)")] = None,
):
    """Newest published pictures tagged as master shots."""
    shots = await showcase.master_shots(limit)
    return MasterShotsResponse(shots=shots)


@router.get("/picture-styles", response_model=PictureStylesResponse)
async def get_picture_styles(
    styles: StyleDep,
    style: Annotated[str | None, Query(description="Style id: landscape, portrait, street or travel")] = None,
):
    """
    Published pictures grouped by photography style.

    Without `style` every gallery is returned; an unknown style returns an
    empty mapping.
    """
    return await styles.picture_styles(style)
