"""
Read-only attendance aggregation for dashboards
"""

from datetime import datetime
from typing import Dict, List, Optional

from app.core.config import settings
from app.schemas.event import CheckInStats
from app.services.reconciler import coupons_owed
from app.services.repositories import AttendanceStore, RegistrantDirectory, RSVPRecord

class ReportingService:
    """Service for check-in statistics"""
    
    @staticmethod
    def checkin_stats(records: List[RSVPRecord]) -> CheckInStats:
        total = len(records)
        checked_in = sum(1 for r in records if r.checked_in)
        
        return CheckInStats(
            total=total,
            checked_in=checked_in,
            pending=total - checked_in,
            percentage_complete=round(checked_in / total * 100) if total else 0,
            total_food_coupons=sum(coupons_owed(r) for r in records),
            food_coupons_given=sum(coupons_owed(r) for r in records if r.food_token_given),
            veg_meals=sum(r.veg_count or 0 for r in records),
            non_veg_meals=sum(r.non_veg_count or 0 for r in records),
            kids_meals=sum(r.kids_count or 0 for r in records),
            no_food_rsvps=sum(1 for r in records if r.no_food),
        )
    
    @staticmethod
    def recent_checkins(
        records: List[RSVPRecord],
        directory: RegistrantDirectory,
        limit: Optional[int] = None
    ) -> List[Dict]:
        """Most recent check-ins first"""
        limit = limit or settings.RECENT_CHECKINS_LIMIT
        checked = [r for r in records if r.checked_in]
        checked.sort(key=lambda r: r.checked_in_at or datetime.min, reverse=True)
        
        recent = []
        for record in checked[:limit]:
            registrant = directory.get(record.user_id)
            recent.append({
                "rsvp_id": record.id,
                "name": registrant.name if registrant else None,
                "email": registrant.email if registrant else None,
                "checked_in_at": record.checked_in_at.isoformat() if record.checked_in_at else None,
                "food_token_given": record.food_token_given,
                "guest_count": record.guest_count,
                "notes": record.notes,
            })
        return recent
    
    @staticmethod
    def event_report(store: AttendanceStore, directory: RegistrantDirectory, event_id: str) -> Optional[Dict]:
        """Stats plus recent check-ins, or None when the event does not exist"""
        event = store.get_event(event_id)
        if not event:
            return None
        
        records = store.list_for_event(event_id)
        return {
            "event": {
                "id": event.id,
                "title": event.title,
                "date": event.date.isoformat() if event.date else None,
                "location": event.location,
            },
            "stats": ReportingService.checkin_stats(records).dict(),
            "recent_checkins": ReportingService.recent_checkins(records, directory),
        }
