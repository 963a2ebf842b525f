from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from backend.application import Services
from backend.core.schema import CamelModel
from backend.routes.dependencies import dump_models, get_services

router = APIRouter(tags=["recommendations"])


class StepRecommendationQuery(CamelModel):
    description: str
    user_id: int


@router.post("/recommendations/steps")
async def recommend_steps(query: StepRecommendationQuery, services: Services = Depends(get_services)) -> dict:
    if not query.description.strip():
        raise HTTPException(status_code=400, detail="description is required")
    items = await services.recommendations.get_recommended_steps(query.description, query.user_id)
    return {"items": dump_models(items)}


@router.get("/requests/{request_id}/recommendations/resources")
async def recommend_resources(request_id: int, services: Services = Depends(get_services)) -> dict:
    if await services.storage.get_request(request_id) is None:
        raise HTTPException(status_code=404, detail="request not found")
    items = await services.recommendations.get_resource_recommendations(request_id)
    return {"items": dump_models(items)}


@router.get("/requests/{request_id}/recommendations/optimizations")
async def recommend_optimizations(request_id: int, services: Services = Depends(get_services)) -> dict:
    if await services.storage.get_request(request_id) is None:
        raise HTTPException(status_code=404, detail="request not found")
    items = await services.recommendations.get_optimization_recommendations(request_id)
    return {"items": dump_models(items)}
