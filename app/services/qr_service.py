"""
QR code generation for check-in tokens
"""

import io
import qrcode

class QRService:
    """Service for generating QR codes"""
    
    @staticmethod
    def generate_checkin_qr(token: str, format: str = 'PNG', box_size: int = 10, border: int = 2) -> bytes:
        """Render a check-in token as a QR image"""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(token)
        qr.make(fit=True)
        
        img = qr.make_image(fill_color="black", back_color="white")
        
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        
        return buffer.getvalue()