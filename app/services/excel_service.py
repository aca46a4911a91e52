"""
Excel export of event attendance
"""

import io
import logging
from typing import Any, Dict, List, Optional
import pandas as pd

from app.exceptions import ResponseValidationError
from app.schemas.rsvp import RSVPField
from app.services.rsvp_service import parse_responses
from app.services.repositories import AttendanceStore, RegistrantDirectory, RSVPRecord

logger = logging.getLogger(__name__)

class ExcelService:
    """Service for handling Excel operations"""
    
    SHEET_NAME = 'Attendance'
    
    @staticmethod
    def _answers(record: RSVPRecord, form: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
        """Typed answers for a row, re-validated against the current form"""
        try:
            return parse_responses(form, record.responses)
        except ResponseValidationError as e:
            logger.warning(f"RSVP {record.id} answers no longer match the form: {e}")
            return {}
    
    @staticmethod
    def attendance_rows(
        records: List[RSVPRecord],
        directory: RegistrantDirectory,
        form: Optional[List[Dict[str, Any]]] = None
    ) -> List[Dict[str, Any]]:
        fields = [RSVPField(**f) for f in (form or [])]
        
        rows = []
        for record in records:
            registrant = directory.get(record.user_id)
            row = {
                'Name': registrant.name if registrant else '',
                'Email': registrant.email if registrant else '',
                'Guests': record.guest_count,
                'Veg Meals': record.veg_count or 0,
                'Non-Veg Meals': record.non_veg_count or 0,
                'Kids Meals': record.kids_count or 0,
                'No Food': 'Yes' if record.no_food else 'No',
                'Payment Reference': record.payment_reference or '',
                'Payment Confirmed': 'Yes' if record.payment_confirmed else 'No',
                'Checked In': 'Yes' if record.checked_in else 'No',
                'Checked In At': record.checked_in_at.strftime('%Y-%m-%d %H:%M:%S') if record.checked_in_at else '',
                'Food Token Given': 'Yes' if record.food_token_given else 'No',
                'Notes': record.notes or '',
            }
            
            answers = ExcelService._answers(record, form)
            for field in fields:
                answer = answers.get(field.id)
                if answer is None:
                    row[field.label] = ''
                elif answer.kind == 'boolean':
                    row[field.label] = 'Yes' if answer.value else 'No'
                else:
                    row[field.label] = answer.value
            
            rows.append(row)
        
        rows.sort(key=lambda r: r['Name'].lower())
        return rows
    
    @staticmethod
    def export_attendance(store: AttendanceStore, directory: RegistrantDirectory, event_id: str) -> Optional[bytes]:
        """Export every RSVP of an event to an .xlsx workbook"""
        event = store.get_event(event_id)
        if not event:
            return None
        
        rows = ExcelService.attendance_rows(store.list_for_event(event_id), directory, event.rsvp_form)
        df = pd.DataFrame(rows)
        
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name=ExcelService.SHEET_NAME)
        
        return buffer.getvalue()
