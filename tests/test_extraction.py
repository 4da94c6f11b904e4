import json

from roomvision.workflow.extraction import extract_analysis, extract_json

from .fakes import SAMPLE_ANALYSIS


class TestExtractJson:
    def test_tagged_fence(self):
        assert extract_json('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_untagged_fence(self):
        assert extract_json('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence_returns_text(self):
        assert extract_json('{"a": 1}') == '{"a": 1}'


class TestExtractAnalysis:
    def test_fenced_json(self):
        text = f"```json\n{json.dumps(SAMPLE_ANALYSIS, ensure_ascii=False)}\n```"
        result = extract_analysis(text)
        assert result.parse_failed is False
        assert result.raw_text_fallback is None
        assert result.to_payload() == SAMPLE_ANALYSIS

    def test_fenced_json_inside_prose(self):
        text = (
            "Claro! Segue a análise do ambiente:\n\n"
            f"```json\n{json.dumps(SAMPLE_ANALYSIS)}\n```\n\n"
            "Qualquer dúvida, estou à disposição."
        )
        result = extract_analysis(text)
        assert result.parse_failed is False
        assert result.to_payload() == SAMPLE_ANALYSIS

    def test_bare_json(self):
        result = extract_analysis(json.dumps(SAMPLE_ANALYSIS))
        assert result.parse_failed is False
        assert result.room_type == "cozinha"
        assert len(result.furniture_suggestions) == 2
        assert result.furniture_suggestions[0].suggested_material == "MDF"
        assert result.total_estimated_value == 5000

    def test_unparseable_text_degrades(self):
        text = "Não consegui identificar o ambiente com clareza, mas parece uma sala."
        result = extract_analysis(text)
        assert result.parse_failed is True
        assert result.raw_text_fallback == text
        assert result.environment_analysis is None
        assert result.furniture_suggestions == []
        assert result.to_payload() == {"analise_texto": text, "erro_parse": True}

    def test_broken_fenced_json_degrades(self):
        text = '```json\n{"analise_ambiente": {"tipo_ambiente": "sala",\n```'
        result = extract_analysis(text)
        assert result.parse_failed is True
        assert result.raw_text_fallback == text

    def test_json_array_degrades(self):
        result = extract_analysis("[1, 2, 3]")
        assert result.parse_failed is True

    def test_unknown_keys_are_kept(self):
        data = {"analise_ambiente": {"tipo_ambiente": "quarto"}, "estilo": "industrial"}
        result = extract_analysis(json.dumps(data))
        assert result.to_payload() == data

    def test_total_is_not_cross_checked(self):
        data = {"sugestoes_moveis": [{"nome": "Painel", "preco_estimado": 100}], "valor_total_estimado": 999}
        result = extract_analysis(json.dumps(data))
        assert result.parse_failed is False
        assert result.total_estimated_value == 999

    def test_null_lists_are_tolerated(self):
        data = {
            "analise_ambiente": {"tipo_ambiente": "sala", "pontos_atencao": None},
            "sugestoes_moveis": None,
        }
        result = extract_analysis(json.dumps(data))
        assert result.parse_failed is False
        assert result.room_type == "sala"
        assert result.environment_analysis.attention_points == []
        assert result.furniture_suggestions == []
        assert result.to_payload() == data

    def test_mistyped_fields_are_tolerated(self):
        data = {
            "analise_ambiente": {"tipo_ambiente": "quarto", "caracteristicas": "piso de madeira"},
            "sugestoes_moveis": [{"nome": "Guarda-roupa", "dimensoes_sugeridas": "2,4 x 2,6"}, "cama"],
            "nivel_complexidade": 3,
        }
        result = extract_analysis(json.dumps(data))
        assert result.parse_failed is False
        assert result.environment_analysis.characteristics == []
        assert [s.name for s in result.furniture_suggestions] == ["Guarda-roupa"]
        assert result.furniture_suggestions[0].suggested_dimensions is None
        assert result.to_payload() == data

    def test_integer_total_stays_integer(self):
        result = extract_analysis('{"valor_total_estimado": 5000}')
        assert result.total_estimated_value == 5000
        assert json.dumps(result.to_payload()) == '{"valor_total_estimado": 5000}'

    def test_reserved_keys_are_dropped(self):
        result = extract_analysis('{"layout_sugerido": "L", "erro_parse": true, "analise_texto": "x"}')
        assert result.parse_failed is False
        assert result.to_payload() == {"layout_sugerido": "L"}


class TestFenceSelection:
    def test_json_fence_preferred_over_earlier_plain_fence(self):
        text = '```\nlargura x altura\n```\nSegue o resultado:\n```json\n{"layout_sugerido": "L"}\n```'
        result = extract_analysis(text)
        assert result.parse_failed is False
        assert result.suggested_layout == "L"

    def test_uppercase_json_tag(self):
        assert extract_json('```JSON\n{"a": 1}\n```') == '{"a": 1}'
