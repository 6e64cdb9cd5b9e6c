from typing import List

from fastapi import APIRouter, HTTPException

from app.schemas import BusinessProfileResponse
from app.services.business_profiles import BusinessNotFound, list_businesses, resolve_business

router = APIRouter()


@router.get("/businesses", response_model=List[BusinessProfileResponse])
async def list_businesses_endpoint() -> List[BusinessProfileResponse]:
    return [BusinessProfileResponse.model_validate(profile.as_dict()) for profile in list_businesses()]


@router.get("/businesses/{business_id}", response_model=BusinessProfileResponse)
async def get_business_endpoint(business_id: str) -> BusinessProfileResponse:
    try:
        profile = resolve_business(business_id)
    except BusinessNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return BusinessProfileResponse.model_validate(profile.as_dict())
