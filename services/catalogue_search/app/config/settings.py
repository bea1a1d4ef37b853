# app/config/settings.py
#
# Description:
# This module defines and manages all configuration settings for the catalogue search service.
# It uses Pydantic's BaseSettings to load configuration from environment variables
# or a .env file, providing a centralized and type-safe way to handle settings.
#
# Key Responsibilities:
# - Define the application's configuration schema.
# - Load settings from environment variables or a specified .env file.
# - Provide a singleton `settings` object for easy access throughout the application.

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Defines the application's configuration settings.
    Pydantic automatically reads values from environment variables or the .env file.
    """
    # --- General Application Settings ---
    app_env: str = "dev"
    port: int = 8000

    # --- OpenSearch (catalogue document store) ---
    opensearch_host: str = "localhost"
    opensearch_port: int = 9200
    opensearch_index: str = "cat"  # Index holding the catalogue item documents
    opensearch_username: str = "admin"
    opensearch_password: str = "admin"
    opensearch_use_ssl: bool = False
    opensearch_verify_certs: bool = False
    opensearch_timeout: int = 30  # Per-request timeout in seconds

    # --- NLP embedding service ---
    nlp_service_url: str = "http://localhost:8004"
    nlp_service_timeout: float = 10.0

    # --- Geocoding (Pelias) ---
    geocoding_url: str = "http://localhost:4000"
    geocoding_timeout: float = 10.0

    # --- Query construction ---
    default_page_size: int = 100
    max_result_window: int = 10000  # Must match index.max_result_window on the backend
    nlp_search_timeout: float = 30.0  # Deadline for the whole NLP orchestration
    vector_field: str = "_word_vector"
    geo_field: str = "location.geometry"
    text_search_fields: List[str] = ["label", "description", "tags", "name", "descriptor", "instance"]

    # --- Logging Configuration ---
    log_level: str = "INFO"

    # Pydantic model configuration to specify the source of the settings
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra fields in .env that are not defined here
    )

# Create a singleton instance of the Settings class to be used across the application
settings = Settings()
