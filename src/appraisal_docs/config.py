"""Appraisal docs configuration — external service credentials and layout settings."""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Google Workspace (Docs/Drive)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_refresh_token: str = ""
    google_docs_template_id: str = ""
    google_docs_template_tax_id: str = ""
    google_drive_folder_id: str = ""

    # WordPress REST API (appraisals post type)
    wordpress_api_url: str = ""
    wp_username: str = ""
    wp_app_password: str = ""

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-pro"

    @model_validator(mode="after")
    def _strip_credentials(self) -> "Settings":
        """Strip whitespace/newlines from pasted credentials and the trailing slash from the WP URL."""
        for field in ("google_client_id", "google_client_secret", "google_refresh_token",
                      "wp_username", "wp_app_password", "gemini_api_key"):
            val = getattr(self, field)
            if val and val != val.strip():
                setattr(self, field, val.strip())
        self.wordpress_api_url = self.wordpress_api_url.strip().rstrip("/")
        return self

    # Document layout
    gallery_columns: int = 3
    table_settle_seconds: float = 2.0  # Docs needs a moment before the new table is readable

    # MLflow
    mlflow_tracking_uri: str = "sqlite:///mlruns/mlflow.db"
    mlflow_experiment_name: str = "appraisal-docs"

    # Logging
    log_json: bool = True
    log_level: str = "INFO"

    environment: str = "development"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
