"""Pydantic models for the environment analysis pipeline.

Wire keys follow the shop application (Portuguese); attributes are English.
Model-output fields are lenient: a value of an unexpected type becomes
``None`` (or an empty list) instead of failing validation.
"""

from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, PrivateAttr


def _text(value):
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    return value


def _object(value):
    return value if isinstance(value, dict) else None


def _list(value):
    return value if isinstance(value, list) else []


def _texts(value):
    return [text for text in map(_text, _list(value)) if text is not None]


def _objects(value):
    return [item for item in _list(value) if isinstance(item, dict)]


Text = Annotated[str | None, BeforeValidator(_text)]
Number = Annotated[int | float | str | None, BeforeValidator(_number)]
TextList = Annotated[list[str], BeforeValidator(_texts)]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# --- Request ---


class AnalysisRequest(BaseModel):
    """Body of ``POST /api/analyze-environment``.

    Required fields are checked by the pipeline so that a missing value is
    reported as a ``ValidationError`` with the shop's error payload.
    """

    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = None
    reference_url: str | None = Field(
        default=None, validation_alias=AliasChoices("reference_url", "referencia_url")
    )
    user_id: str | None = None
    preferences: str | None = Field(
        default=None, validation_alias=AliasChoices("preferences", "preferencias")
    )


# --- Catalog ---


class CatalogItem(_Model):
    id: str | None = None
    name: str = Field(alias="nome")
    category: str | None = Field(default=None, alias="categoria")
    base_price: float | None = Field(default=None, alias="preco_base")
    description: str | None = Field(default=None, alias="descricao")


# --- Model output ---


class EstimatedDimensions(_Model):
    width: Number = Field(default=None, alias="largura_metros")
    depth: Number = Field(default=None, alias="profundidade_metros")
    ceiling_height: Number = Field(default=None, alias="pe_direito_metros")


class EnvironmentAnalysis(_Model):
    room_type: Text = Field(default=None, alias="tipo_ambiente")
    estimated_dimensions: Annotated[EstimatedDimensions | None, BeforeValidator(_object)] = Field(
        default=None, alias="dimensoes_estimadas"
    )
    characteristics: TextList = Field(default_factory=list, alias="caracteristicas")
    attention_points: TextList = Field(default_factory=list, alias="pontos_atencao")


class SuggestedDimensions(_Model):
    width: Number = Field(default=None, alias="largura")
    height: Number = Field(default=None, alias="altura")
    depth: Number = Field(default=None, alias="profundidade")


class FurnitureSuggestion(_Model):
    name: Text = Field(default=None, alias="nome")
    type: Text = Field(default=None, alias="tipo")
    suggested_dimensions: Annotated[SuggestedDimensions | None, BeforeValidator(_object)] = Field(
        default=None, alias="dimensoes_sugeridas"
    )
    suggested_material: Text = Field(default=None, alias="material_sugerido")
    suggested_finish: Text = Field(default=None, alias="acabamento_sugerido")
    matched_catalog_item: Text = Field(default=None, alias="item_catalogo_correspondente")
    estimated_price: Number = Field(default=None, alias="preco_estimado")


class AnalysisResult(_Model):
    """Structured analysis, or the raw model text when parsing failed.

    ``parse_failed`` implies only ``raw_text_fallback`` is set. The total is
    passed through as returned by the model.
    """

    environment_analysis: Annotated[EnvironmentAnalysis | None, BeforeValidator(_object)] = Field(
        default=None, alias="analise_ambiente"
    )
    furniture_suggestions: Annotated[list[FurnitureSuggestion], BeforeValidator(_objects)] = Field(
        default_factory=list, alias="sugestoes_moveis"
    )
    suggested_layout: Text = Field(default=None, alias="layout_sugerido")
    total_estimated_value: Number = Field(default=None, alias="valor_total_estimado")
    notes: Text = Field(default=None, alias="observacoes")
    complexity_level: Text = Field(default=None, alias="nivel_complexidade")
    raw_text_fallback: Text = Field(default=None, alias="analise_texto")
    parse_failed: bool = Field(default=False, alias="erro_parse")

    _source: dict[str, Any] | None = PrivateAttr(default=None)

    @classmethod
    def from_model_output(cls, data: dict[str, Any]) -> "AnalysisResult":
        """Structured result for a parsed JSON object; the object itself is the payload."""
        fields = {k: v for k, v in data.items() if k not in ("analise_texto", "erro_parse")}
        result = cls.model_validate(fields)
        result._source = fields
        return result

    @classmethod
    def degraded(cls, text: str) -> "AnalysisResult":
        return cls(raw_text_fallback=text, parse_failed=True)

    @property
    def room_type(self) -> str | None:
        if self.environment_analysis is None:
            return None
        return self.environment_analysis.room_type

    def to_payload(self) -> dict[str, Any]:
        """The object as returned by the model (or the degraded form)."""
        if self._source is not None:
            return self._source
        return self.model_dump(by_alias=True, exclude_unset=True)


# --- Response ---


class AnalysisResponse(BaseModel):
    success: bool = True
    analise: dict[str, Any]
    imagem_simulada_url: str | None = None
    catalogo_usado: int = 0
