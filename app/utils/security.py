"""
Staff authentication and per-client rate limiting
"""

import secrets
import threading
import time
from collections import defaultdict
from typing import Dict, List, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings

security = HTTPBearer()

def verify_admin_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify the bearer token used by admin and door-staff clients"""
    if not secrets.compare_digest(credentials.credentials, settings.ADMIN_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token"
        )
    return credentials.credentials

class RateLimiter:
    """Sliding one-minute window per client key"""

    def __init__(self, window_seconds: int = 60):
        self.window_seconds = window_seconds
        self.requests: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def allow(self, key: str, limit: Optional[int] = None, now: Optional[float] = None) -> bool:
        limit = limit or settings.RATE_LIMIT_PER_MINUTE
        now = now if now is not None else time.time()
        cutoff = now - self.window_seconds

        with self._lock:
            recent = [t for t in self.requests[key] if t > cutoff]
            if len(recent) >= limit:
                self.requests[key] = recent
                return False
            recent.append(now)
            self.requests[key] = recent
            return True

rate_limiter = RateLimiter()

def get_client_ip(request: Request) -> str:
    """Extract client IP, honouring reverse proxy headers"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"

def enforce_rate_limit(request: Request):
    """Dependency rejecting clients over the per-minute limit"""
    if not rate_limiter.allow(get_client_ip(request)):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later."
        )
