"""Image-analysis collaborators that derive clothing tags for a photo."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

import google.generativeai as genai

from models.records import EMPTY_ANALYSIS, ClothingAnalysis
from models.taxonomy import CLOTHING_SLOTS
from tools.fetcher import Fetcher

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a fashion expert. Analyze the clothing in the image and describe the outerwear, "
    "top, bottom, and shoes. Be specific but concise. If an item is not present, leave it blank."
)
USER_PROMPT = (
    "Please analyze this outfit and describe the outerwear, top, bottom, and shoes. "
    "For each piece, specify the color and style. If an item is not present, leave it blank. "
    "Answer with one line per piece in the form 'Outerwear: ...'."
)
_ABSENT_MARKERS = {"", "none", "n/a", "na", "not present", "not visible", "blank", "-"}


def _extract_slot(text: str, slot: str) -> str:
    match = re.search(rf"\b{slot}\W*:\s*([^\n]+)", text, flags=re.IGNORECASE)
    if not match:
        return ""
    value = match.group(1).strip().strip("*_-").strip()
    return "" if value.lower().rstrip(".") in _ABSENT_MARKERS else value


def parse_clothing_analysis(text: str) -> ClothingAnalysis:
    """Pull ``Outerwear: ...`` style lines out of a free-text model answer."""

    if not text:
        return EMPTY_ANALYSIS
    return ClothingAnalysis(**{slot: _extract_slot(text, slot) for slot in CLOTHING_SLOTS})


class ClothingAnalyzer(ABC):
    """Derive outerwear/top/bottom/shoes descriptions for an image URL."""

    @abstractmethod
    async def analyze(self, image_url: str) -> ClothingAnalysis:
        """Return the derived tags; implementations may raise on failure."""


class GeminiClothingAnalyzer(ClothingAnalyzer):
    """Gemini vision call; the caller is expected to have run ``genai.configure``."""

    def __init__(self, fetcher: Fetcher, model: str, mime_type: str = "image/jpeg") -> None:
        self.fetcher = fetcher
        self.mime_type = mime_type
        self._model = genai.GenerativeModel(model_name=model, system_instruction=SYSTEM_PROMPT)

    async def analyze(self, image_url: str) -> ClothingAnalysis:
        image_bytes = await self.fetcher.fetch(image_url)
        response = await self._model.generate_content_async(
            [USER_PROMPT, {"mime_type": self.mime_type, "data": image_bytes}]
        )
        analysis = parse_clothing_analysis(response.text)
        LOGGER.info("Parsed clothing analysis", extra={"slots_filled": sum(1 for v in analysis.as_dict().values() if v)})
        return analysis


class StaticClothingAnalyzer(ClothingAnalyzer):
    """Returns a fixed analysis; used offline and in tests."""

    def __init__(self, analysis: ClothingAnalysis = EMPTY_ANALYSIS) -> None:
        self.analysis = analysis
        self.calls: list[str] = []

    async def analyze(self, image_url: str) -> ClothingAnalysis:
        self.calls.append(image_url)
        return self.analysis


__all__ = [
    "ClothingAnalyzer",
    "GeminiClothingAnalyzer",
    "StaticClothingAnalyzer",
    "parse_clothing_analysis",
]
