"""
Seat map inventory service
"""

import logging
import math
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arena.core.errors import Conflict, NotFound, ValidationError
from arena.models import Event, Seat, SeatMap
from arena.models.enums import SeatStatus, SeatType
from arena.schemas.event import SeatConfig
from arena.schemas.seat_map import SeatMapCreate

logger = logging.getLogger(__name__)

def seat_label(row: int, column: int) -> str:
    """A1-style label; rows past Z fall back to R27C1 form"""
    if row < 26:
        return f"{chr(65 + row)}{column + 1}"
    return f"R{row + 1}C{column + 1}"

class SeatMapService:
    """Service for seat map operations"""
    
    @staticmethod
    def get(db: Session, seat_map_id: int) -> SeatMap:
        seat_map = db.query(SeatMap).filter(SeatMap.id == seat_map_id).first()
        if not seat_map:
            raise NotFound("Seat map")
        return seat_map
    
    @staticmethod
    def list(db: Session, creator_id: Optional[int] = None) -> List[SeatMap]:
        query = db.query(SeatMap)
        if creator_id is not None:
            query = query.filter(SeatMap.creator_id == creator_id)
        return query.order_by(SeatMap.created_at.desc(), SeatMap.id.desc()).all()
    
    @staticmethod
    def event_count(db: Session, seat_map_id: int) -> int:
        return db.query(func.count(Event.id)).filter(Event.seat_map_id == seat_map_id).scalar()
    
    @staticmethod
    def build(creator_id: int, data: SeatMapCreate) -> SeatMap:
        """Validate a seat layout and return an unsaved SeatMap"""
        errors = []
        seen = set()
        for seat in data.seats:
            if seat.row >= data.height or seat.column >= data.width:
                errors.append(f"Seat at row {seat.row}, column {seat.column} is outside the {data.width}x{data.height} grid")
            position = (seat.row, seat.column)
            if position in seen:
                errors.append(f"Duplicate seat at row {seat.row}, column {seat.column}")
            seen.add(position)
            if seat.status == SeatStatus.RESERVED:
                errors.append("Seats can only become RESERVED through a registration")
        if errors:
            raise ValidationError("; ".join(errors))
        
        seat_map = SeatMap(
            name=data.name.strip(),
            description=data.description,
            width=data.width,
            height=data.height,
            creator_id=creator_id,
        )
        seat_map.seats = [
            Seat(
                row=seat.row,
                column=seat.column,
                label=seat.label or seat_label(seat.row, seat.column),
                type=seat.type,
                status=seat.status,
            )
            for seat in data.seats
        ]
        return seat_map
    
    @staticmethod
    def build_generated(creator_id: int, name: str, config: SeatConfig) -> SeatMap:
        """Lay out `total_seats` row by row, the first `vip_seats` as VIP"""
        height = math.ceil(config.total_seats / config.seats_per_row)
        seat_map = SeatMap(
            name=name,
            description="Generated seating",
            width=config.seats_per_row,
            height=height,
            creator_id=creator_id,
        )
        seats = []
        for index in range(config.total_seats):
            row, column = divmod(index, config.seats_per_row)
            seats.append(Seat(
                row=row,
                column=column,
                label=seat_label(row, column),
                type=SeatType.VIP if index < config.vip_seats else SeatType.REGULAR,
                status=SeatStatus.AVAILABLE,
            ))
        seat_map.seats = seats
        return seat_map
    
    @staticmethod
    def create(db: Session, creator_id: int, data: SeatMapCreate) -> SeatMap:
        seat_map = SeatMapService.build(creator_id, data)
        db.add(seat_map)
        db.commit()
        db.refresh(seat_map)
        logger.info(f"Seat map {seat_map.id} created with {len(seat_map.seats)} seats")
        return seat_map
    
    @staticmethod
    def delete(db: Session, seat_map_id: int) -> SeatMap:
        """Delete a seat map and its seats unless an event still uses it"""
        seat_map = SeatMapService.get(db, seat_map_id)
        in_use = SeatMapService.event_count(db, seat_map_id)
        if in_use:
            raise Conflict(f"Seat map is used by {in_use} event(s) and cannot be deleted")
        try:
            db.delete(seat_map)
            db.commit()
        except IntegrityError:
            # an event was linked after the check above
            db.rollback()
            raise Conflict("Seat map is used by an event and cannot be deleted")
        return seat_map
    
    @staticmethod
    def event_seats(db: Session, event: Event) -> List[Dict]:
        """Seats of the event's map with who holds each reserved one"""
        if event.seat_map_id is None:
            return []
        seats = db.query(Seat).filter(
            Seat.seat_map_id == event.seat_map_id
        ).order_by(Seat.row, Seat.column).all()
        
        result = []
        for seat in seats:
            registration = seat.registration
            result.append({
                "id": seat.id,
                "row": seat.row,
                "column": seat.column,
                "label": seat.label,
                "type": seat.type,
                "status": seat.status,
                "reserved_by": {
                    "user_id": registration.user.id,
                    "name": registration.user.name
                } if registration is not None else None
            })
        return result
