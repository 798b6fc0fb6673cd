"""
Seat map routes
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from arena.core import policy
from arena.core.db import get_db
from arena.models import User
from arena.models.enums import AuditAction
from arena.schemas.seat_map import SeatMapCreate, SeatMapDetail, SeatMapResponse
from arena.services.audit_service import Actor, AuditService
from arena.services.seat_map_service import SeatMapService
from arena.utils.responses import success_response
from arena.utils.security import get_current_user

router = APIRouter()

def seat_map_detail(db: Session, seat_map) -> SeatMapDetail:
    detail = SeatMapDetail.model_validate(seat_map)
    detail.event_count = SeatMapService.event_count(db, seat_map.id)
    return detail

@router.get("/seat-maps")
async def list_seat_maps(db: Session = Depends(get_db)):
    seat_maps = SeatMapService.list(db)
    return success_response(
        message="Seat maps retrieved",
        data=[SeatMapResponse.model_validate(seat_map) for seat_map in seat_maps]
    )

@router.post("/seat-maps", status_code=201)
async def create_seat_map(
    seat_map_data: SeatMapCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a seat map from an explicit seat list"""
    policy.authorize(user, "seat_map.create")
    seat_map = SeatMapService.create(db, user.id, seat_map_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.SEAT_MAP_CREATED,
        "SeatMap",
        seat_map.id,
        actor=Actor.from_user(user, request),
        metadata={"name": seat_map.name, "seats": len(seat_map.seats)}
    )
    return success_response(
        message="Seat map created successfully",
        data=seat_map_detail(db, seat_map),
        status_code=201
    )

@router.get("/seat-maps/{seat_map_id}")
async def get_seat_map(seat_map_id: int, db: Session = Depends(get_db)):
    seat_map = SeatMapService.get(db, seat_map_id)
    return success_response(message="Seat map retrieved", data=seat_map_detail(db, seat_map))

@router.delete("/seat-maps/{seat_map_id}")
async def delete_seat_map(
    seat_map_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Delete an unused seat map together with its seats"""
    policy.authorize(user, "seat_map.delete")
    seat_map = SeatMapService.delete(db, seat_map_id)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.SEAT_MAP_DELETED,
        "SeatMap",
        seat_map_id,
        actor=Actor.from_user(user, request),
        metadata={"name": seat_map.name}
    )
    return success_response(message="Seat map deleted successfully")
