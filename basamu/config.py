"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "BASAMU API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the BASAMU website and admin console"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ]

    # Database Configuration (hosted PostgreSQL)
    DATABASE_URL: str = ""

    # Cloudinary Configuration (blob store)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Storage buckets (Cloudinary folders)
    EXECUTIVE_PHOTOS_BUCKET: str = "executive-photos"
    EVENT_IMAGES_BUCKET: str = "event-images"
    CULTURAL_IMAGES_BUCKET: str = "cultural-images"
    AVATARS_BUCKET: str = "avatars"

    # Upload limits in bytes
    MAX_IMAGE_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5 MB
    MAX_VIDEO_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50 MB

    # Session tokens issued by the hosted auth service
    # SUPABASE_JWT_SECRET is the project's JWT signing secret
    SUPABASE_JWT_SECRET: str = "your-project-jwt-secret-change-this-in-production"
    SUPABASE_JWT_AUDIENCE: str = "authenticated"
    SESSION_COOKIE_NAME: str = "sb-access-token"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
