"""
FastAPI service for value-alignment rankings.
Exposes REST endpoints that rank the brand catalog and nearby businesses
against a caller-supplied cause set.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..business_scoring import similarity_label
from ..catalog import load_catalog
from ..config import DANGER_TONE_MAX, DISTANCE_OPTIONS_MILES, SUCCESS_TONE_MIN, CatalogPaths
from ..distance import evaluate, is_supported_range
from ..models import Catalog, CauseSetError, UserCause, parse_causes
from ..ranking import RankingAssembler, ScoredBrand, ScoredBusiness

load_dotenv()

LOGGER = logging.getLogger(__name__)


# Pydantic models for request/response
class CauseModel(BaseModel):
    value_id: str = Field(..., description="Value identifier", min_length=1)
    stance: Literal["support", "avoid"] = Field(..., description="Declared stance on the value")


class CauseSetRequest(BaseModel):
    causes: List[CauseModel] = Field(default_factory=list, description="The user's declared cause set")


class BrandRankingRequest(CauseSetRequest):
    window: Optional[int] = Field(10, description="Number of aligned/unaligned brands to return", ge=1, le=50)


class BusinessRankingRequest(CauseSetRequest):
    latitude: float = Field(..., description="Origin latitude", ge=-90, le=90)
    longitude: float = Field(..., description="Origin longitude", ge=-180, le=180)
    max_range_miles: Optional[float] = Field(None, description="Range cutoff in miles; omit for no cutoff", gt=0)
    sort_direction: Literal["highToLow", "lowToHigh"] = Field("highToLow", description="Order of the full list")


class BrandScore(BaseModel):
    brand_id: str
    name: str
    category: str
    website: str
    alignment_score: Optional[int] = None
    tone: Optional[str] = None


class BrandRankingResponse(BaseModel):
    scoring_available: bool
    total_brands: int
    aligned: List[BrandScore]
    unaligned: List[BrandScore]
    scores: Dict[str, int]
    timestamp: str


class BusinessScore(BaseModel):
    business_id: str
    name: str
    alignment_score: Optional[int] = None
    tone: Optional[str] = None
    distance_miles: Optional[float] = None
    closest_location: Optional[str] = None


class BusinessRankingResponse(BaseModel):
    scoring_available: bool
    center_lat: float
    center_lon: float
    max_range_miles: Optional[float] = None
    total_results: int
    aligned: List[BusinessScore]
    unaligned: List[BusinessScore]
    all: List[BusinessScore]
    timestamp: str


class BusinessScoresResponse(BaseModel):
    scoring_available: bool
    total_businesses: int
    scores: Dict[str, int]
    timestamp: str


class StanceMatchModel(BaseModel):
    value_id: str
    user_stance: str
    business_stance: str


class BusinessDetailResponse(BaseModel):
    business_id: str
    name: str
    alignment_score: Optional[int] = None
    label: str
    tone: Optional[str] = None
    aligned_values: List[StanceMatchModel]
    unaligned_values: List[StanceMatchModel]
    matching_values: List[str]


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    data_loaded: bool
    total_values: int
    total_brands: int
    total_businesses: int


# Initialize FastAPI app
app = FastAPI(
    title="Endorse Alignment Rankings API",
    description="Brand and local business rankings aligned with a user's values",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global data storage (loaded on startup)
DATA_CACHE: Dict[str, Any] = {
    "catalog": None,
    "loaded": False
}


def score_tone(score: Optional[int]) -> Optional[str]:
    """Colour convention layered on top of an alignment score."""
    if score is None:
        return None
    if score >= SUCCESS_TONE_MIN:
        return "success"
    if score <= DANGER_TONE_MAX:
        return "danger"
    return "neutral"


def set_catalog(catalog: Catalog) -> None:
    DATA_CACHE["catalog"] = catalog
    DATA_CACHE["loaded"] = True


def load_data():
    """Load the catalog snapshot used by every request."""
    if DATA_CACHE["loaded"]:
        return

    source = os.getenv("ENDORSE_CATALOG_SOURCE", "csv").lower()
    LOGGER.info("Loading catalog from %s", source)
    if source == "supabase":
        from ..supabase_client import get_supabase_service

        catalog = get_supabase_service().load_catalog()
    else:
        paths = CatalogPaths(data_dir=Path(os.getenv("ENDORSE_DATA_DIR", "data/catalog")))
        catalog = load_catalog(paths)

    set_catalog(catalog)
    LOGGER.info("Catalog ready for API requests")


def _catalog() -> Catalog:
    if not DATA_CACHE["loaded"]:
        raise HTTPException(status_code=503, detail="Data still loading, please try again")
    return DATA_CACHE["catalog"]


def _causes(request: CauseSetRequest) -> List[UserCause]:
    try:
        return list(parse_causes(cause.model_dump() for cause in request.causes))
    except CauseSetError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _brand_score(entry: ScoredBrand) -> BrandScore:
    return BrandScore(
        brand_id=entry.brand.id,
        name=entry.brand.name,
        category=entry.brand.category,
        website=entry.brand.website,
        alignment_score=entry.alignment_score,
        tone=score_tone(entry.alignment_score),
    )


def _business_score(entry: ScoredBusiness) -> BusinessScore:
    return BusinessScore(
        business_id=entry.business.id,
        name=entry.business.name,
        alignment_score=entry.alignment_score,
        tone=score_tone(entry.alignment_score),
        distance_miles=round(entry.distance, 2) if entry.distance is not None else None,
        closest_location=entry.closest_location,
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.on_event("startup")
async def startup_event():
    """Load data when API starts."""
    load_data()


@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint."""
    return {
        "message": "Endorse Alignment Rankings API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    catalog: Optional[Catalog] = DATA_CACHE["catalog"]
    return HealthResponse(
        status="healthy" if DATA_CACHE["loaded"] else "loading",
        timestamp=_now(),
        data_loaded=DATA_CACHE["loaded"],
        total_values=len(catalog.values) if catalog else 0,
        total_brands=len(catalog.brands) if catalog else 0,
        total_businesses=len(catalog.businesses) if catalog else 0
    )


@app.get("/values", response_model=List[Dict[str, str]])
async def list_values(category: Optional[str] = Query(None, description="Filter by value category")):
    """List the value catalog, optionally filtered by category."""
    catalog = _catalog()
    return [
        {"id": value.id, "name": value.name, "category": value.category.value}
        for value in catalog.values
        if category is None or value.category.value == category.lower()
    ]


@app.get("/distance-options", response_model=List[int])
async def distance_options():
    """Range selector values, in miles."""
    return list(DISTANCE_OPTIONS_MILES)


@app.post("/rankings/brands", response_model=BrandRankingResponse)
async def rank_brands(request: BrandRankingRequest):
    """
    Rank the brand catalog against a cause set.

    Returns the first ``window`` aligned and unaligned brands plus the
    normalised score of every brand.
    """
    catalog = _catalog()
    ranking = RankingAssembler(catalog).rank_brands(_causes(request))
    return BrandRankingResponse(
        scoring_available=ranking.scoring_available,
        total_brands=len(ranking.all),
        aligned=[_brand_score(e) for e in ranking.aligned[: request.window]],
        unaligned=[_brand_score(e) for e in ranking.unaligned[: request.window]],
        scores=ranking.score_by_brand_id,
        timestamp=_now()
    )


@app.post("/rankings/businesses", response_model=BusinessRankingResponse)
async def rank_businesses(request: BusinessRankingRequest):
    """
    Rank businesses around a point.

    Businesses scoring >= 60 are aligned, < 40 unaligned; everything in range
    is returned in ``all`` in the requested direction.
    """
    catalog = _catalog()
    if not is_supported_range(request.max_range_miles):
        raise HTTPException(
            status_code=422,
            detail=f"max_range_miles must be one of {list(DISTANCE_OPTIONS_MILES)} or omitted"
        )
    ranking = RankingAssembler(catalog).rank_businesses(
        _causes(request),
        (request.latitude, request.longitude),
        max_range_miles=request.max_range_miles,
        sort_direction=request.sort_direction,
    )
    return BusinessRankingResponse(
        scoring_available=ranking.scoring_available,
        center_lat=request.latitude,
        center_lon=request.longitude,
        max_range_miles=request.max_range_miles,
        total_results=len(ranking.all),
        aligned=[_business_score(e) for e in ranking.aligned],
        unaligned=[_business_score(e) for e in ranking.unaligned],
        all=[_business_score(e) for e in ranking.all],
        timestamp=_now()
    )


@app.post("/scores/businesses", response_model=BusinessScoresResponse)
async def score_businesses(request: CauseSetRequest):
    """
    Score every business in the catalog, with or without a location.
    """
    catalog = _catalog()
    causes = _causes(request)
    scores = RankingAssembler(catalog).score_businesses(causes)
    return BusinessScoresResponse(
        scoring_available=bool(causes),
        total_businesses=len(catalog.businesses),
        scores=scores,
        timestamp=_now()
    )


@app.post("/businesses/{business_id}/detail", response_model=BusinessDetailResponse)
async def business_detail(business_id: str, request: CauseSetRequest):
    """
    Score a single business and break down which values agree or conflict.
    """
    catalog = _catalog()
    business = catalog.business(business_id)
    if business is None:
        raise HTTPException(status_code=404, detail=f"Business '{business_id}' not found")

    causes = _causes(request)
    assembler = RankingAssembler(catalog)
    score = assembler.score_business(causes, business)
    comparison = assembler.compare(causes, business)
    return BusinessDetailResponse(
        business_id=business.id,
        name=business.name,
        alignment_score=score,
        label=similarity_label(score),
        tone=score_tone(score),
        aligned_values=[
            StanceMatchModel(value_id=m.value_id, user_stance=m.user_stance.value, business_stance=m.business_stance.value)
            for m in comparison.aligned_values
        ],
        unaligned_values=[
            StanceMatchModel(value_id=m.value_id, user_stance=m.user_stance.value, business_stance=m.business_stance.value)
            for m in comparison.unaligned_values
        ],
        matching_values=list(comparison.matching_values)
    )


@app.get("/businesses/{business_id}/distance", response_model=Dict[str, Any])
async def business_distance(
    business_id: str,
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    max_range_miles: Optional[float] = Query(None, gt=0),
):
    """
    Distance from a point to a business's closest location.
    """
    catalog = _catalog()
    business = catalog.business(business_id)
    if business is None:
        raise HTTPException(status_code=404, detail=f"Business '{business_id}' not found")
    result = evaluate(business, latitude, longitude, max_range_miles)
    return {
        "business_id": business.id,
        "closest_distance": result.closest_distance,
        "closest_location": result.closest_location_label,
        "is_within_range": result.is_within_range,
    }


@app.get("/search", response_model=Dict[str, Any])
async def search(q: str = Query(..., min_length=1), exclude: List[str] = Query([])):
    """
    Search brands and businesses by name.
    """
    catalog = _catalog()
    brands, businesses = RankingAssembler(catalog).search(q, frozenset(exclude))
    return {
        "query": q,
        "brands": [{"id": b.id, "name": b.name, "category": b.category} for b in brands],
        "businesses": [{"id": b.id, "name": b.name} for b in businesses],
    }


@app.post("/suggestions/brands", response_model=Dict[str, Any])
async def suggest_brands(request: CauseSetRequest):
    """
    Suggest brands for a list built from hand-picked value stances.
    """
    catalog = _catalog()
    causes = _causes(request)
    try:
        suggestions = RankingAssembler(catalog).suggest_brands(causes)
    except CauseSetError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not suggestions:
        raise HTTPException(status_code=404, detail="No brands found that align with the selected values")
    return {
        "total": len(suggestions),
        "brands": [
            {
                "brand_id": s.brand.id,
                "name": s.brand.name,
                "alignment_strength": s.alignment_strength,
                "matched_values": s.matched_values,
            }
            for s in suggestions
        ],
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
