"""
Region endpoints - listing for everyone, management for admins.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from models import Region, User
from schemas import APIResponse, RegionCreate, RegionUpdate, RegionResponse
from utils.dependencies import get_current_user, require_admin, parse_uuid

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_region(db: Session, region_id: str) -> Region:
    region = db.query(Region).filter(Region.id == parse_uuid(region_id, "region")).first()
    if region is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Region not found"
        )
    return region


@router.get("/", response_model=APIResponse[List[RegionResponse]])
async def list_regions(
    include_inactive: bool = Query(False, description="Admins only: include inactive regions"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List regions, active ones only unless an admin asks for all."""
    query = db.query(Region)
    if not (include_inactive and current_user.is_admin):
        query = query.filter(Region.is_active.is_(True))

    regions = query.order_by(Region.name.asc()).all()
    return APIResponse(
        message="Regions retrieved successfully",
        data=[RegionResponse.model_validate(region) for region in regions]
    )


@router.get("/{region_id}", response_model=APIResponse[RegionResponse])
async def get_region(
    region_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    region = _get_region(db, region_id)
    return APIResponse(message="Region retrieved successfully", data=RegionResponse.model_validate(region))


@router.post("/", response_model=APIResponse[RegionResponse], status_code=status.HTTP_201_CREATED)
async def create_region(
    region_data: RegionCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a region.

    - Admin only
    - Name and code must be unique (code is stored upper-case)
    """
    duplicate = db.query(Region).filter(
        (Region.name == region_data.name) | (Region.code == region_data.code)
    ).first()
    if duplicate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A region with this name or code already exists"
        )

    region = Region(name=region_data.name, code=region_data.code, description=region_data.description)
    db.add(region)
    db.commit()
    db.refresh(region)

    logger.info(f"Region {region.code} created by {admin.id}")

    return APIResponse(message="Region created successfully", data=RegionResponse.model_validate(region))


@router.patch("/{region_id}", response_model=APIResponse[RegionResponse])
async def update_region(
    region_id: str,
    region_data: RegionUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Rename, describe, activate or deactivate a region (admin only)."""
    region = _get_region(db, region_id)

    if region_data.name is not None and region_data.name != region.name:
        if db.query(Region).filter(Region.name == region_data.name).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A region with this name already exists"
            )
        region.name = region_data.name
    if region_data.description is not None:
        region.description = region_data.description
    if region_data.is_active is not None:
        region.is_active = region_data.is_active

    db.commit()
    db.refresh(region)

    return APIResponse(message="Region updated successfully", data=RegionResponse.model_validate(region))


@router.delete("/{region_id}", response_model=APIResponse[None])
async def delete_region(
    region_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete a region and its leaderboards.

    - Admin only
    - Refused while any user still belongs to the region
    """
    region = _get_region(db, region_id)

    member_count = db.query(User).filter(User.region_id == region.id).count()
    if member_count > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Region still has {member_count} users assigned"
        )

    db.delete(region)
    db.commit()

    logger.info(f"Region {region_id} deleted by {admin.id}")

    return APIResponse(message="Region deleted successfully")
