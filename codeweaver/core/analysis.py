# codeweaver/core/analysis.py
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .response_extractor import extract_json


class Suggestion(BaseModel):
    description: str
    fix_prompt: str


class AnalysisData(BaseModel):
    """Structured reply to the analysis prompt."""
    language: Optional[str] = None
    breakdown: str = ""
    suggestions: List[Suggestion] = Field(default_factory=list)


def parse_analysis(text: str) -> Optional[AnalysisData]:
    """Recovers an AnalysisData from raw model output, or None if it is not one."""
    extracted = extract_json(text)
    if extracted is None or not isinstance(extracted.value, dict):
        return None
    try:
        return AnalysisData.model_validate(extracted.value)
    except ValidationError as e:
        logger.warning(f"Analysis response did not match the expected shape: {e}")
        return None
