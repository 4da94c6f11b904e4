"""Prompt templates for the environment photo analysis."""

from ..models.schemas import CatalogItem

EMPTY_CATALOG = "Nenhum item no catálogo"

_OUTPUT_SCHEMA = """\
{
  "analise_ambiente": {
    "tipo_ambiente": "cozinha/quarto/sala/escritório/banheiro/área de serviço/outro",
    "dimensoes_estimadas": {
      "largura_metros": número estimado,
      "profundidade_metros": número estimado,
      "pe_direito_metros": número estimado
    },
    "caracteristicas": ["lista de características observadas"],
    "pontos_atencao": ["instalações elétricas", "janelas", "portas", etc]
  },
  "sugestoes_moveis": [
    {
      "nome": "nome do móvel sugerido",
      "tipo": "armário/bancada/painel/prateleira/etc",
      "dimensoes_sugeridas": {
        "largura": número em metros,
        "altura": número em metros,
        "profundidade": número em metros
      },
      "material_sugerido": "MDF/MDP/compensado/etc",
      "acabamento_sugerido": "lacado/laminado/etc",
      "item_catalogo_correspondente": "nome do item do catálogo se houver correspondência ou null",
      "preco_estimado": número estimado em reais
    }
  ],
  "layout_sugerido": "descrição textual do layout ideal",
  "valor_total_estimado": número em reais,
  "observacoes": "observações importantes para o marceneiro",
  "nivel_complexidade": "baixo/médio/alto"
}"""


def _format_price(value: float | None) -> str:
    if value is None:
        return "sob consulta"
    return f"R$ {int(value)}" if float(value).is_integer() else f"R$ {value:.2f}"


def format_catalog(catalog: list[CatalogItem]) -> str:
    """Bulleted price list, or the empty-catalog sentinel."""
    if not catalog:
        return EMPTY_CATALOG
    lines = []
    for item in catalog:
        category = f" ({item.category})" if item.category else ""
        lines.append(f"- {item.name}{category}: {_format_price(item.base_price)}")
    return "\n".join(lines)


def build_system_prompt(catalog: list[CatalogItem]) -> str:
    """Return the system prompt grounding the analysis in the tenant catalog.

    Use with `analyze_environment(client, system_prompt=..., image_url=...)`.
    """
    return f"""\
Você é um especialista em marcenaria e design de interiores.
Analise a foto do ambiente enviada e forneça uma análise detalhada para ajudar o marceneiro a criar um orçamento.

CATÁLOGO DE MÓVEIS DISPONÍVEIS:
{format_catalog(catalog)}

RESPONDA SEMPRE EM FORMATO JSON com a seguinte estrutura:
{_OUTPUT_SCHEMA}"""


def build_user_prompt(preferences: str | None = None, *, has_reference: bool = False) -> str:
    if preferences:
        text = f"Analise este ambiente considerando as seguintes preferências do cliente: {preferences}"
    else:
        text = "Analise este ambiente e sugira móveis planejados adequados."
    if has_reference:
        text += " A segunda imagem é uma referência de estilo enviada pelo cliente."
    return text
