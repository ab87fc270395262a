"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Secret key for JWT token encoding
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Access token expiration time in minutes

        # Frontend settings
        frontend_url: URL of the frontend application (allowed CORS origin)

        # Bootstrap admin settings (optional)
        bootstrap_admin_email: Optional admin email for first admin creation
        bootstrap_admin_password: Optional admin password for first admin creation

        # Document storage
        storage_backend: "local" or "cloudinary"
        upload_dir: Directory used by the local storage backend
        upload_url_prefix: URL prefix the local upload directory is served under
        max_upload_bytes: Largest accepted document upload

        # Referral listing and reports
        referrals_page_size: Fixed page size of the referral list
        report_months: Length of the trailing monthly series
        report_top_n: Number of practices/providers in the top rankings
        dashboard_recent: Number of recent referrals on the dashboard
    """
    # Database settings
    database_url: str = "sqlite:///./referrals.db"

    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12

    # Frontend settings
    frontend_url: str = "http://localhost:3000"

    # Bootstrap admin settings (optional - only used for first admin creation)
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None

    # Document storage settings
    storage_backend: str = "local"
    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Cloudinary settings (only required when storage_backend == "cloudinary")
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    # Listing and reporting
    referrals_page_size: int = 20
    report_months: int = 6
    report_top_n: int = 5
    dashboard_recent: int = 10

    log_level: str = "INFO"

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

# Create settings instance
settings = Settings()
