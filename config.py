"""
Configuration management for the Juri legal assistant
"""
import os
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application Configuration
    app_name: str = "Juri Legal Assistant"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Security Configuration
    allowed_hosts: str = "*"
    cors_origins: str = "*"

    # Primary chat backend (Brev server)
    brev_server_url: Optional[str] = "http://localhost:8000"
    chat_primary_timeout_seconds: float = 30.0

    # Hosted completion fallback (NVIDIA, OpenAI-compatible)
    nvidia_api_key: Optional[str] = None
    nvidia_base_url: str = "https://integrate.api.nvidia.com/v1"
    nvidia_model: str = "nvidia/llama-3.3-nemotron-super-49b-v1"

    # Generation defaults
    default_temperature: float = 0.7
    default_max_tokens: int = 2048
    default_top_p: float = 0.95

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "structured"
    log_file: Optional[str] = None

    # Upload Configuration
    max_file_size_mb: int = 50
    pdf_max_pages: int = 50
    summary_excerpt_chars: int = 400

    # Template download Configuration
    template_url_allowed_hosts: str = "www.ycombinator.com"

    # Simulation Configuration
    simulation_duration_seconds: float = 3.0
    simulation_run_ttl_seconds: float = 3600.0
    max_simulation_runs: int = 1000

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        case_sensitive = False


# Global settings instance
settings = Settings()
