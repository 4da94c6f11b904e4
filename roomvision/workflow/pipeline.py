"""Environment photo pipeline — catalog-grounded analysis + furnished render.

Stages: compose prompt → vision analysis → JSON extraction → furnished render
(synthesis, normalization, persistence) → history record → response.
Analysis errors abort the request; everything after extraction is
best-effort and degrades to a response without the simulated image.
"""

import logging
import time

import httpx
from openai import AsyncOpenAI
from supabase import Client

from .. import db
from ..config import Settings
from ..errors import (
    ConfigurationError,
    PersistenceFailure,
    SynthesisUnavailable,
    ValidationError,
)
from ..models.schemas import AnalysisRequest, AnalysisResponse, AnalysisResult, CatalogItem
from ..prompts.environment_analysis import build_system_prompt, build_user_prompt
from ..prompts.furnished_render import build_edit_instruction, describe_furniture
from ..tools.image_edit import synthesize_furnished_image
from ..tools.llm import analyze_environment, create_gateway_client
from ..tools.storage import persist_image
from .extraction import extract_analysis

logger = logging.getLogger(__name__)


class EnvironmentAnalysisPipeline:
    """Runs one analysis per call; holds only shared, stateless clients."""

    def __init__(
        self,
        settings: Settings,
        *,
        db_client: Client | None = None,
        llm_client: AsyncOpenAI | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self._db = db_client
        self._llm = llm_client
        self._http = http_client

    @property
    def db_client(self) -> Client:
        if self._db is None:
            self._db = db.create_db_client(self.settings)
        return self._db

    @property
    def llm_client(self) -> AsyncOpenAI:
        if self._llm is None:
            self._llm = create_gateway_client(self.settings)
        return self._llm

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout_seconds),
                follow_redirects=True,
            )
        return self._http

    async def aclose(self) -> None:
        """Close the HTTP and gateway clients this pipeline holds."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        if self._llm is not None:
            await self._llm.close()
            self._llm = None

    def check_configuration(self) -> None:
        required = {
            "AI_GATEWAY_API_KEY": self.settings.ai_gateway_api_key,
            "SUPABASE_URL": self.settings.supabase_url,
            "SUPABASE_SERVICE_ROLE_KEY": self.settings.supabase_service_role_key,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            logger.error("Missing configuration: %s", ", ".join(missing))
            raise ConfigurationError(f"{missing[0]} não configurada")

    async def run(self, request: AnalysisRequest) -> AnalysisResponse:
        self.check_configuration()
        if not request.image_url or not request.user_id:
            raise ValidationError()

        t0 = time.time()
        user_id = request.user_id

        # --- Composing ---
        catalog = self._load_catalog(user_id)
        system_prompt = build_system_prompt(catalog)
        user_prompt = build_user_prompt(
            request.preferences, has_reference=bool(request.reference_url)
        )

        # --- Analyzing (fatal on failure) ---
        logger.info("User %s: analysing photo with %d catalog item(s)", user_id, len(catalog))
        raw_text = await analyze_environment(
            self.llm_client,
            model=self.settings.analysis_model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            image_url=request.image_url,
            reference_url=request.reference_url,
            max_tokens=self.settings.analysis_max_tokens,
        )

        # --- Extracting ---
        analysis = extract_analysis(raw_text)

        simulated_url = None
        if analysis.parse_failed:
            logger.warning("User %s: analysis returned as raw text, skipping render", user_id)
        elif self.settings.image_synthesis_enabled:
            simulated_url = await self._render_furnished_image(request, analysis)

        payload = analysis.to_payload()
        if self.settings.analysis_history_enabled:
            self._record_history(request, analysis, payload, simulated_url)

        logger.info(
            "User %s: analysis complete in %.1fs (structured=%s, image=%s)",
            user_id, time.time() - t0, not analysis.parse_failed, bool(simulated_url),
        )
        return AnalysisResponse(
            analise=payload,
            imagem_simulada_url=simulated_url,
            catalogo_usado=len(catalog),
        )

    def _load_catalog(self, user_id: str) -> list[CatalogItem]:
        """Tenant catalog; a failed read is treated as an empty catalog."""
        try:
            return db.list_catalog_items(
                self.db_client, user_id, limit=self.settings.catalog_limit
            )
        except Exception:
            logger.exception("User %s: catalog read failed, continuing without catalog", user_id)
            return []

    async def _render_furnished_image(
        self, request: AnalysisRequest, analysis: AnalysisResult
    ) -> str | None:
        instruction = build_edit_instruction(
            analysis.room_type,
            describe_furniture(analysis.furniture_suggestions),
            has_reference=bool(request.reference_url),
        )
        try:
            image_ref = await synthesize_furnished_image(
                self.llm_client,
                self.http_client,
                instruction=instruction,
                image_url=request.image_url,
                reference_url=request.reference_url,
                chain=self.settings.synthesis_strategies,
            )
            if image_ref is None:
                raise SynthesisUnavailable()

            return await persist_image(
                self.db_client,
                self.http_client,
                bucket=self.settings.storage_bucket,
                image_ref=image_ref,
                user_id=request.user_id,
            )
        except (SynthesisUnavailable, PersistenceFailure) as e:
            logger.warning("User %s: no simulated image: %s", request.user_id, e.message)
        except Exception:
            logger.exception("User %s: furnished render failed", request.user_id)
        return None

    def _record_history(
        self,
        request: AnalysisRequest,
        analysis: AnalysisResult,
        payload: dict,
        simulated_url: str | None,
    ) -> None:
        try:
            db.create_analysis_record(
                self.db_client,
                user_id=request.user_id,
                photo_url=request.image_url,
                simulated_image_url=simulated_url,
                room_type=analysis.room_type,
                analysis=payload,
            )
        except Exception:
            logger.exception("User %s: could not save analysis history", request.user_id)
