"""
Unit tests — parsing classifier output (``reports.classifier``).

The per-category judgement types, fenced / chatty model output, and the
rule that anything malformed is a failed attempt rather than an error.
"""

from __future__ import annotations

import json
from unittest import mock

import pytest

from conftest import FakeClassifier
from core.domain.exceptions import ExternalServiceError
from reports.classifier import (
    JUDGEMENT_TYPES,
    AppliancesJudgement,
    BooksPaperJudgement,
    ClothesJudgement,
    ElectronicsJudgement,
    FurnitureJudgement,
    GeminiClassifier,
    build_verification_prompt,
    extract_json_object,
    get_classifier,
    parse_report_analysis,
    parse_verification,
    verify_collection_image,
)
from reports.models import ItemCategory


class TestExtractJson:

    def test_plain_json(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_code_fenced_json(self):
        assert extract_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_json_embedded_in_prose(self):
        text = 'Sure! Here is my answer: {"a": 1} Let me know if you need more.'
        assert extract_json_object(text) == {"a": 1}

    @pytest.mark.parametrize("text", [None, "", "no json here", "[1, 2, 3]", "{broken"])
    def test_unusable_text(self, text):
        assert extract_json_object(text) is None


class TestReportAnalysis:

    def test_complete_analysis(self):
        analysis = parse_report_analysis(
            '{"itemType": "cotton", "quantity": "5 kg", '
            '"estimatedValue": "Approximately 1000-2000 KSH", "confidence": 0.9}'
        )
        assert analysis.item_type == "cotton"
        assert analysis.quantity == "5 kg"
        assert analysis.estimated_points == 150

    @pytest.mark.parametrize(
        "payload",
        [
            '{"itemType": "", "quantity": "5 kg", "estimatedValue": "100-200", "confidence": 0.9}',
            '{"itemType": "cotton", "estimatedValue": "100-200", "confidence": 0.9}',
            '{"itemType": "cotton", "quantity": "5 kg", "estimatedValue": "100-200", "confidence": "high"}',
        ],
    )
    def test_incomplete_analysis_is_rejected(self, payload):
        assert parse_report_analysis(payload) is None

    def test_zero_confidence_is_still_an_analysis(self):
        analysis = parse_report_analysis(
            '{"itemType": "cotton", "quantity": "5 kg", "estimatedValue": "100-200", "confidence": 0}'
        )
        assert analysis is not None
        assert analysis.confidence == 0.0


class TestVerificationJudgements:

    def test_every_category_has_a_judgement(self):
        assert set(JUDGEMENT_TYPES) == set(ItemCategory.values)

    def test_clothes_schema(self):
        judgement = parse_verification(
            ItemCategory.CLOTHES,
            '{"clothTypeMatch": true, "quantityMatch": true, "confidence": 0.85}',
        )
        assert isinstance(judgement, ClothesJudgement)
        assert judgement.accepted is True
        assert judgement.as_dict() == {
            "category": "clothes",
            "clothTypeMatch": True,
            "quantityMatch": True,
            "confidence": 0.85,
            "accepted": True,
        }

    @pytest.mark.parametrize(
        "category,payload,judgement_type",
        [
            (ItemCategory.CLOTHES, {"clothTypeMatch": True, "quantityMatch": True}, ClothesJudgement),
            (ItemCategory.APPLIANCES, {"applianceTypeMatch": True, "conditionMatch": True}, AppliancesJudgement),
            (ItemCategory.ELECTRONICS, {"deviceTypeMatch": True, "quantityMatch": True}, ElectronicsJudgement),
            (ItemCategory.BOOKS_PAPER, {"materialMatch": True, "weightMatch": True}, BooksPaperJudgement),
            (ItemCategory.FURNITURE, {"furnitureTypeMatch": True, "sizeMatch": True}, FurnitureJudgement),
        ],
    )
    def test_each_category_parses_its_own_keys(self, category, payload, judgement_type):
        judgement = parse_verification(category, json.dumps({**payload, "confidence": 0.9}))
        assert isinstance(judgement, judgement_type)
        assert judgement.accepted is True
        assert judgement.as_dict()["category"] == category

    def test_appliances_use_condition(self):
        judgement = parse_verification(
            ItemCategory.APPLIANCES,
            '{"applianceTypeMatch": true, "conditionMatch": false, "confidence": 0.95}',
        )
        assert isinstance(judgement, AppliancesJudgement)
        assert judgement.accepted is False

    def test_schema_of_another_category_does_not_parse(self):
        text = '{"clothTypeMatch": true, "quantityMatch": true, "confidence": 0.9}'
        assert parse_verification(ItemCategory.FURNITURE, text) is None

    @pytest.mark.parametrize(
        "payload",
        [
            '{"clothTypeMatch": "yes", "quantityMatch": true, "confidence": 0.9}',
            '{"clothTypeMatch": true, "quantityMatch": true}',
            '{"clothTypeMatch": true, "quantityMatch": true, "confidence": 1.5}',
            '{"clothTypeMatch": true, "quantityMatch": true, "confidence": true}',
        ],
    )
    def test_malformed_fields(self, payload):
        assert parse_verification(ItemCategory.CLOTHES, payload) is None

    def test_low_confidence_is_parsed_but_not_accepted(self):
        judgement = parse_verification(
            ItemCategory.CLOTHES,
            '{"clothTypeMatch": true, "quantityMatch": true, "confidence": 0.7}',
        )
        assert judgement is not None
        assert judgement.accepted is False

    def test_prompt_names_category_keys(self):
        prompt = build_verification_prompt(ItemCategory.BOOKS_PAPER, "newspapers", "10 kg")
        assert '"materialMatch"' in prompt
        assert '"weightMatch"' in prompt
        assert "'newspapers'" in prompt

    def test_verify_collection_image_sends_prompt_and_image(self):
        classifier = FakeClassifier({"deviceTypeMatch": True, "quantityMatch": True, "confidence": 0.8})
        judgement = verify_collection_image(
            classifier,
            category=ItemCategory.ELECTRONICS,
            item_type="laptop",
            amount="2 devices",
            image_bytes=b"img",
            mime_type="image/png",
        )
        assert judgement.accepted is True
        assert classifier.calls[0]["mime_type"] == "image/png"
        assert "laptop" in classifier.calls[0]["prompt"]


class TestGeminiClassifier:

    def test_returns_model_text(self):
        client = mock.Mock()
        client.models.generate_content.return_value = mock.Mock(text='{"a": 1}')
        classifier = GeminiClassifier(api_key="k", model="gemini-1.5-flash", client=client)

        assert classifier.generate("prompt", b"img", "image/jpeg") == '{"a": 1}'
        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"
        assert kwargs["contents"][0] == "prompt"

    def test_transport_failure_becomes_external_service_error(self):
        client = mock.Mock()
        client.models.generate_content.side_effect = ConnectionError("unreachable")
        classifier = GeminiClassifier(api_key="k", model="m", client=client)

        with pytest.raises(ExternalServiceError):
            classifier.generate("prompt", b"img", "image/jpeg")

    def test_empty_response_text(self):
        client = mock.Mock()
        client.models.generate_content.return_value = mock.Mock(text=None)
        classifier = GeminiClassifier(api_key="k", model="m", client=client)
        assert classifier.generate("prompt", b"img", "image/jpeg") == ""

    def test_get_classifier_requires_api_key(self, settings):
        settings.GEMINI_API_KEY = ""
        with pytest.raises(ExternalServiceError):
            get_classifier()
