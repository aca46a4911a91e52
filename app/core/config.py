"""
Configuration settings for the application
"""

import os
from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""
    
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./jtm_checkin.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")
    
    # Security
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "admin_token_123")
    
    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    
    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://localhost:8081",
    ]
    
    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 120
    
    # Check-in tokens
    CHECKIN_TOKEN_TAG: str = "JTM-EVENT"
    CHECKIN_TOKEN_MAX_AGE_HOURS: Optional[int] = None
    CHECKIN_CLOSE_AFTER_HOURS: Optional[int] = None
    
    # Scanner / dashboards
    SCAN_POLL_INTERVAL_MS: int = 500
    SCAN_SESSION_IDLE_MINUTES: int = 30
    RECENT_CHECKINS_LIMIT: int = 50
    
    class Config:
        env_file = ".env"

settings = Settings()
