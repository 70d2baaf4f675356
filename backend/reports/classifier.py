"""
Image classifier collaborator (Google Gemini via ``google-genai``).

Two questions are put to the model:

* **Intake analysis** — what is in the reporter's photo (item type,
  quantity, estimated value, confidence)?
* **Collection verification** — does the collector's photo match what
  was reported?  The answer schema differs per item category, so each
  category has its own ``VerificationJudgement`` subclass and the
  ``JUDGEMENT_TYPES`` registry maps category → subclass.

Model output that does not parse into the expected structure yields
``None`` (a failed attempt); only transport/API failures raise
``ExternalServiceError``.

Classifiers are built per request by ``get_classifier()``; nothing here
keeps a module-level client.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Protocol

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from google import genai
from google.genai import types

from core.domain.exceptions import ExternalServiceError
from core.services import RewardCalculatorService

from .models import ItemCategory

logger = logging.getLogger(__name__)


class ImageClassifier(Protocol):
    def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        """Send ``prompt`` plus one inline image and return the model's text."""
        ...


class GeminiClassifier:
    """Thin wrapper around ``genai.Client.models.generate_content``."""

    def __init__(self, *, api_key: str, model: str, client: Any = None) -> None:
        self.model = model
        self._client = client or genai.Client(api_key=api_key)

    def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        image_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=[prompt, image_part],
            )
        except Exception as exc:
            logger.exception("Gemini request failed (model=%s)", self.model)
            raise ExternalServiceError(
                "Error verifying the image. Please try again."
            ) from exc
        return response.text or ""


def get_classifier() -> ImageClassifier:
    """Build the classifier from settings."""
    if not settings.GEMINI_API_KEY:
        raise ExternalServiceError("Image verification is not configured.")
    return GeminiClassifier(api_key=settings.GEMINI_API_KEY, model=settings.GEMINI_MODEL)


# ════════════════════════════════════════════════════════════════════
#  Response parsing
# ════════════════════════════════════════════════════════════════════

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """
    Pull a JSON object out of free model text.

    Markdown code fences are stripped; if the remainder is not valid
    JSON the outermost ``{...}`` span is tried.
    """
    if not text:
        return None
    cleaned = _FENCE.sub("", text).strip()
    for candidate in (cleaned, *(m.group(0) for m in _OBJECT.finditer(cleaned))):
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not 0.0 <= value <= 1.0:
        return None
    return value


# ════════════════════════════════════════════════════════════════════
#  Intake analysis
# ════════════════════════════════════════════════════════════════════

#: category → (item noun, type examples, quantity unit hint)
_CATEGORY_VOCABULARY: dict[str, tuple[str, str, str]] = {
    ItemCategory.CLOTHES:     ("cloth", "cotton, polyester, wool, silk", "in kg or pieces"),
    ItemCategory.APPLIANCES:  ("appliance", "fridge, microwave, washing machine", "number of units"),
    ItemCategory.ELECTRONICS: ("electronic device", "phone, laptop, television", "number of devices"),
    ItemCategory.BOOKS_PAPER: ("paper material", "books, newspapers, cardboard", "in kg"),
    ItemCategory.FURNITURE:   ("furniture", "chair, table, sofa, wardrobe", "number of pieces and size"),
}


@dataclass(frozen=True)
class ReportAnalysis:
    item_type: str
    quantity: str
    estimated_value: str
    confidence: float

    @property
    def estimated_points(self) -> int:
        return RewardCalculatorService.compute_points_from_estimated_value(self.estimated_value)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_analysis_prompt(category: str) -> str:
    noun, examples, unit = _CATEGORY_VOCABULARY[category]
    return (
        "Analyze this image and provide:\n"
        f"1. The type of {noun} (e.g., {examples})\n"
        f"2. An estimate of the quantity or amount ({unit})\n"
        "3. An estimated monetary value in the format \"Approximately 1000-2000 KSH\"\n"
        "4. Your confidence level in this assessment\n"
        "Respond in JSON format like this:\n"
        "{\n"
        f'  "itemType": "type of {noun}",\n'
        '  "quantity": "estimated quantity with unit",\n'
        '  "estimatedValue": "Approximately 1000-2000 KSH",\n'
        '  "confidence": confidence level as a number between 0 and 1\n'
        "}"
    )


def parse_report_analysis(text: str | None) -> ReportAnalysis | None:
    """All four fields must be present and non-empty."""
    data = extract_json_object(text)
    if data is None:
        return None
    confidence = _confidence(data.get("confidence"))
    fields = [data.get(key) for key in ("itemType", "quantity", "estimatedValue")]
    if confidence is None or not all(isinstance(f, str) and f.strip() for f in fields):
        return None
    item_type, quantity, estimated_value = (f.strip() for f in fields)
    return ReportAnalysis(item_type, quantity, estimated_value, confidence)


def analyze_report_image(
    classifier: ImageClassifier,
    category: str,
    image_bytes: bytes,
    mime_type: str,
) -> ReportAnalysis | None:
    text = classifier.generate(build_analysis_prompt(category), image_bytes, mime_type)
    analysis = parse_report_analysis(text)
    if analysis is None:
        logger.warning("Unparseable %s analysis response: %.200r", category, text)
    return analysis


# ════════════════════════════════════════════════════════════════════
#  Collection verification: one judgement type per category
# ════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VerificationJudgement:
    """
    Base of the per-category judgement union.

    Subclasses name the JSON keys that play the "type matches" and
    "quantity (or analogous) matches" roles for their category.
    """

    type_match: bool
    quantity_match: bool
    confidence: float

    category: ClassVar[str]
    type_key: ClassVar[str]
    quantity_key: ClassVar[str]
    quantity_question: ClassVar[str]

    @property
    def accepted(self) -> bool:
        return RewardCalculatorService.is_verification_accepted(
            type_match=self.type_match,
            quantity_match=self.quantity_match,
            confidence=self.confidence,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            self.type_key: self.type_match,
            self.quantity_key: self.quantity_match,
            "confidence": self.confidence,
            "accepted": self.accepted,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> VerificationJudgement | None:
        type_match = data.get(cls.type_key)
        quantity_match = data.get(cls.quantity_key)
        confidence = _confidence(data.get("confidence"))
        if not isinstance(type_match, bool) or not isinstance(quantity_match, bool):
            return None
        if confidence is None:
            return None
        return cls(type_match=type_match, quantity_match=quantity_match, confidence=confidence)


class ClothesJudgement(VerificationJudgement):
    category = ItemCategory.CLOTHES
    type_key = "clothTypeMatch"
    quantity_key = "quantityMatch"
    quantity_question = "Does the estimated quantity match the reported amount?"


class AppliancesJudgement(VerificationJudgement):
    category = ItemCategory.APPLIANCES
    type_key = "applianceTypeMatch"
    quantity_key = "conditionMatch"
    quantity_question = "Does the appliance's visible condition match the reported condition?"


class ElectronicsJudgement(VerificationJudgement):
    category = ItemCategory.ELECTRONICS
    type_key = "deviceTypeMatch"
    quantity_key = "quantityMatch"
    quantity_question = "Does the number of devices match the reported amount?"


class BooksPaperJudgement(VerificationJudgement):
    category = ItemCategory.BOOKS_PAPER
    type_key = "materialMatch"
    quantity_key = "weightMatch"
    quantity_question = "Does the estimated weight match the reported amount?"


class FurnitureJudgement(VerificationJudgement):
    category = ItemCategory.FURNITURE
    type_key = "furnitureTypeMatch"
    quantity_key = "sizeMatch"
    quantity_question = "Do the number and size of pieces match the reported amount?"


JUDGEMENT_TYPES: dict[str, type[VerificationJudgement]] = {
    judgement.category: judgement
    for judgement in (
        ClothesJudgement,
        AppliancesJudgement,
        ElectronicsJudgement,
        BooksPaperJudgement,
        FurnitureJudgement,
    )
}

_uncovered = set(ItemCategory.values) - set(JUDGEMENT_TYPES)
if _uncovered:
    raise ImproperlyConfigured(
        f"No verification judgement for categories: {', '.join(sorted(_uncovered))}"
    )


def build_verification_prompt(category: str, item_type: str, amount: str) -> str:
    judgement = JUDGEMENT_TYPES[category]
    noun = _CATEGORY_VOCABULARY[category][0]
    return (
        f"You are verifying the collection of a reported {noun} item.\n"
        f"The report says: type '{item_type}', amount '{amount}'.\n"
        "Analyze this image and answer:\n"
        f"1. Does the {noun} type in the image match the reported type?\n"
        f"2. {judgement.quantity_question}\n"
        "3. Your confidence level in this assessment.\n"
        "Respond in JSON format like this:\n"
        "{\n"
        f'  "{judgement.type_key}": true/false,\n'
        f'  "{judgement.quantity_key}": true/false,\n'
        '  "confidence": confidence level as a number between 0 and 1\n'
        "}"
    )


def parse_verification(category: str, text: str | None) -> VerificationJudgement | None:
    data = extract_json_object(text)
    if data is None:
        return None
    return JUDGEMENT_TYPES[category].from_payload(data)


def verify_collection_image(
    classifier: ImageClassifier,
    *,
    category: str,
    item_type: str,
    amount: str,
    image_bytes: bytes,
    mime_type: str,
) -> VerificationJudgement | None:
    prompt = build_verification_prompt(category, item_type, amount)
    text = classifier.generate(prompt, image_bytes, mime_type)
    judgement = parse_verification(category, text)
    if judgement is None:
        logger.warning("Unparseable %s verification response: %.200r", category, text)
    return judgement
