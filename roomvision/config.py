"""Configuration and environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent.parent / ".env"
if not _env_path.exists():
    _env_path = Path(__file__).parent / ".env"
load_dotenv(_env_path)

# --- AI gateway models ---
ANALYSIS_MODEL = "google/gemini-2.5-pro"
IMAGE_MODEL_FAST = "google/gemini-2.5-flash-image-preview"
IMAGE_MODEL_PRO = "google/gemini-3-pro-image-preview"

AI_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1"
STORAGE_BUCKET = "fotos-ambientes"


@dataclass(frozen=True)
class SynthesisStrategy:
    """One entry of the image synthesis fallback chain."""

    model: str
    encoding: str  # "url" | "base64"


def _flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def default_synthesis_chain(fast_model: str, pro_model: str) -> tuple[SynthesisStrategy, ...]:
    """URL pass over both models, then the same models with inline base64 images."""
    return (
        SynthesisStrategy(fast_model, "url"),
        SynthesisStrategy(pro_model, "url"),
        SynthesisStrategy(fast_model, "base64"),
        SynthesisStrategy(pro_model, "base64"),
    )


@dataclass(frozen=True)
class Settings:
    ai_gateway_api_key: str = ""
    ai_gateway_url: str = AI_GATEWAY_URL
    analysis_model: str = ANALYSIS_MODEL
    image_model_fast: str = IMAGE_MODEL_FAST
    image_model_pro: str = IMAGE_MODEL_PRO

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    storage_bucket: str = STORAGE_BUCKET

    catalog_limit: int = 50
    analysis_max_tokens: int = 4000
    request_timeout_seconds: float = 30.0
    synthesis_max_attempts: int = 4

    # --- Feature flags ---
    image_synthesis_enabled: bool = True
    analysis_history_enabled: bool = True

    log_level: str = "INFO"

    synthesis_chain: tuple[SynthesisStrategy, ...] = field(default=())

    def __post_init__(self):
        if not self.synthesis_chain:
            chain = default_synthesis_chain(self.image_model_fast, self.image_model_pro)
            object.__setattr__(self, "synthesis_chain", chain)

    @property
    def synthesis_strategies(self) -> tuple[SynthesisStrategy, ...]:
        """The fallback chain, capped to the configured attempt budget."""
        return self.synthesis_chain[: max(0, self.synthesis_max_attempts)]


def load_settings() -> Settings:
    """Read settings from the environment. Called once at process start."""
    return Settings(
        ai_gateway_api_key=os.getenv("AI_GATEWAY_API_KEY") or os.getenv("LOVABLE_API_KEY", ""),
        ai_gateway_url=os.getenv("AI_GATEWAY_URL", AI_GATEWAY_URL),
        analysis_model=os.getenv("ANALYSIS_MODEL", ANALYSIS_MODEL),
        image_model_fast=os.getenv("IMAGE_MODEL_FAST", IMAGE_MODEL_FAST),
        image_model_pro=os.getenv("IMAGE_MODEL_PRO", IMAGE_MODEL_PRO),
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
        storage_bucket=os.getenv("STORAGE_BUCKET", STORAGE_BUCKET),
        catalog_limit=int(os.getenv("CATALOG_LIMIT", "50")),
        analysis_max_tokens=int(os.getenv("ANALYSIS_MAX_TOKENS", "4000")),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
        synthesis_max_attempts=int(os.getenv("SYNTHESIS_MAX_ATTEMPTS", "4")),
        image_synthesis_enabled=_flag("IMAGE_SYNTHESIS_ENABLED", True),
        analysis_history_enabled=_flag("ANALYSIS_HISTORY_ENABLED", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
