"""Prompt template for the furnished-room image edit."""

from ..models.schemas import FurnitureSuggestion

_GENERIC_FURNITURE = "móveis planejados adequados ao ambiente"


def describe_suggestion(suggestion: FurnitureSuggestion) -> str:
    text = suggestion.name or suggestion.type or "móvel planejado"
    if suggestion.name and suggestion.type:
        text += f" ({suggestion.type})"
    if suggestion.suggested_material:
        text += f" em {suggestion.suggested_material}"
    if suggestion.suggested_finish:
        text += f" com acabamento {suggestion.suggested_finish}"
    return text


def describe_furniture(suggestions: list[FurnitureSuggestion]) -> str:
    """One clause per suggestion, e.g. ``Armário aéreo (armário) em MDF com acabamento lacado``."""
    return ", ".join(describe_suggestion(s) for s in suggestions)


def build_edit_instruction(
    room_type: str | None,
    furniture: str,
    *,
    has_reference: bool = False,
) -> str:
    """Build the image-edit instruction sent with the original photo."""
    room = room_type or "ambiente"
    style = (
        "Use a segunda imagem apenas como referência de estilo, cores e acabamentos. "
        if has_reference
        else ""
    )
    return (
        f"Edite esta foto de um(a) {room} adicionando os seguintes móveis planejados: "
        f"{furniture or _GENERIC_FURNITURE}. "
        f"{style}"
        "\n\nRESTRIÇÕES OBRIGATÓRIAS:\n"
        "- Preserve exatamente a estrutura do ambiente: paredes, piso, teto, portas e janelas.\n"
        "- Mantenha a mesma perspectiva, enquadramento e iluminação da foto original.\n"
        "- Adicione os móveis em escala proporcional às dimensões do ambiente.\n"
        "- Resultado fotorrealista.\n\n"
        "Retorne apenas a imagem editada, sem nenhum texto."
    )
