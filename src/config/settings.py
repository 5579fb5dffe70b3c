"""
Configuration management for Storybook

Loads environment variables and provides application settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional, Dict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    app_name: str = "Storybook"
    port: int = 3000
    log_level: str = "INFO"

    # CORS Configuration
    # Default "*" allows all origins (suitable for development)
    # For production, set to comma-separated list:
    #   CORS_ALLOWED_ORIGINS=https://app.example.com,https://admin.example.com
    cors_allowed_origins: str = "*"

    # Firebase Configuration
    firebase_project_id: Optional[str] = None
    google_application_credentials: Optional[str] = None

    # Firebase Service Account (optional - for direct credential usage)
    firebase_client_email: Optional[str] = None
    firebase_private_key: Optional[str] = None
    firebase_private_key_id: Optional[str] = None

    # =========================================================================
    # Firestore collections
    # =========================================================================
    characters_collection: str = "characters"
    children_collection: str = "children"
    stories_collection: str = "stories"
    prompt_config_document: str = "systemConfig/prompts"

    # Firestore rejects "in" filters with more values than this
    firestore_in_query_limit: int = 30

    # Thread pool for the synchronous firebase_admin client
    firestore_max_workers: int = 10

    # Global prompt config is re-read from Firestore after this many seconds
    prompt_config_cache_ttl_seconds: float = 60.0

    # Debug Configuration
    debug_storage: bool = False  # Log Firestore reads/writes to JSONL
    debug_log_dir: str = "logs/debug"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def get_firebase_credentials_dict(self) -> Optional[Dict]:
        """
        Get Firebase credentials as a dict from environment variables.

        Returns None if credentials are not available.
        """
        if self.firebase_client_email and self.firebase_private_key:
            return {
                "type": "service_account",
                "project_id": self.firebase_project_id,
                "private_key_id": self.firebase_private_key_id or "",
                "private_key": self.firebase_private_key.replace("\\n", "\n"),  # Handle escaped newlines
                "client_email": self.firebase_client_email,
                "client_id": "",
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
            }
        return None


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once.
    """
    return Settings()
