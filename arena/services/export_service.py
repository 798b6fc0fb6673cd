"""
Excel export of an event's registrations
"""

import io
from typing import Dict, List

import pandas as pd
from sqlalchemy.orm import Session

from arena.models import Event, Registration
from arena.models.enums import CheckInStatus

class ExportService:
    """Service for spreadsheet exports"""
    
    COLUMNS = [
        'Name', 'Email', 'Seat', 'Seat Type', 'Team', 'Status',
        'Payment', 'Amount', 'Checked In', 'Registered At'
    ]
    
    @staticmethod
    def registration_rows(db: Session, event: Event) -> List[Dict]:
        registrations = db.query(Registration).filter(
            Registration.event_id == event.id
        ).order_by(Registration.registered_at.asc(), Registration.id.asc()).all()
        
        data = []
        for registration in registrations:
            seat = registration.seat
            data.append({
                'Name': registration.user.name,
                'Email': registration.user.email,
                'Seat': seat.label if seat else '',
                'Seat Type': seat.type.value if seat else '',
                'Team': registration.team.name if registration.team else '',
                'Status': registration.status.value,
                'Payment': registration.payment_status.value,
                'Amount': registration.payment_amount,
                'Checked In': 'Yes' if registration.check_in_status == CheckInStatus.CHECKED_IN else 'No',
                'Registered At': registration.registered_at,
            })
        return data
    
    @staticmethod
    def export_registrations(db: Session, event: Event) -> bytes:
        """Write the event's registrations to an xlsx workbook"""
        df = pd.DataFrame(ExportService.registration_rows(db, event), columns=ExportService.COLUMNS)
        
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Registrations')
        
        return buffer.getvalue()
