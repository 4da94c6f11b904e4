"""Error taxonomy for the environment analysis pipeline.

Fatal errors abort the request and are rendered as ``{"error": message}``
with ``http_status``. Non-fatal errors are raised by the best-effort stages
and absorbed by the orchestrator.
"""

from __future__ import annotations


class PipelineError(Exception):
    http_status: int = 500
    default_message: str = "Erro desconhecido"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message}


class ConfigurationError(PipelineError):
    default_message = "Serviço de análise não configurado"


class ValidationError(PipelineError):
    http_status = 400
    default_message = "image_url e user_id são obrigatórios"


class RateLimited(PipelineError):
    http_status = 429
    default_message = "Limite de requisições atingido. Tente novamente em alguns minutos."


class QuotaExhausted(PipelineError):
    http_status = 402
    default_message = "Créditos insuficientes. Por favor, adicione créditos à sua conta."


class UpstreamFailure(PipelineError):
    default_message = "Erro na análise"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        if message is None and status_code is not None:
            message = f"Erro na análise: {status_code}"
        super().__init__(message)


class EmptyResponse(UpstreamFailure):
    default_message = "Resposta vazia da IA"


# --- Non-fatal ---


class SynthesisUnavailable(PipelineError):
    default_message = "Nenhum modelo produziu a imagem simulada"


class PersistenceFailure(PipelineError):
    default_message = "Falha ao salvar a imagem simulada"
