"""
QR code generation service
"""

import io
import qrcode

from arena.core.config import settings

class QRService:
    """Service for generating QR codes"""
    
    @staticmethod
    def get_event_url(event_id: int) -> str:
        """Public page the QR code points to"""
        return f"{settings.BASE_URL}/events/{event_id}"
    
    @staticmethod
    def generate_event_qr(event_id: int, format: str = 'PNG') -> bytes:
        """Generate a QR code for an event's public page"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(QRService.get_event_url(event_id))
        qr.make(fit=True)
        
        img = qr.make_image(fill_color="black", back_color="white")
        
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        
        return buffer.getvalue()
