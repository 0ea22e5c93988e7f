# =============================================================================
# medcore/ai/clinical_assistant.py
# AI Clinical Assistant for MedCore
# Symptom triage and SOAP-note drafting via an LLM
# =============================================================================
"""
ClinicalAssistant - thin adapter over the OpenAI chat completions API.

Two tasks, each returning a fixed JSON shape:
1. analyze_symptoms(text)   -> SymptomAnalysis
2. draft_soap_note(text)    -> SoapNote

The service is treated as unreliable. Any failure (no API key, network error,
malformed or incomplete JSON) is logged and returned as None, which callers
render as a normal "no data" state.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from openai import OpenAI

from medcore.errors.exceptions import AIServiceError

logger = logging.getLogger(__name__)


@dataclass
class SymptomAnalysis:
    considerations: List[str] = field(default_factory=list)
    triage_level: str = ""
    follow_up_questions: List[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class SoapNote:
    subjective: str = ""
    objective: str = ""
    assessment: str = ""
    plan: str = ""


SYMPTOM_PROMPT = """You are a clinical decision-support assistant for a primary care clinic.
Analyze the symptoms and return JSON with exactly these keys:
"considerations" (array of strings: potential clinical considerations),
"triageLevel" (string: Low, Medium, or High priority),
"followUpQuestions" (array of strings: questions for the medical professional),
"summary" (string)."""

SOAP_PROMPT = """You are a medical scribe. Convert the consultation transcript into a
professional SOAP note. Return JSON with exactly these string keys:
"subjective", "objective", "assessment", "plan"."""


class ClinicalAssistant:
    """
    Usage:
        assistant = ClinicalAssistant(api_key=settings.openai_api_key)
        analysis = assistant.analyze_symptoms("fever and cough for 3 days")
        if analysis is None:
            ...  # show empty state
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Optional[OpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def is_available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise AIServiceError("No API key configured", model=self.model)
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def analyze_symptoms(self, symptoms: str) -> Optional[SymptomAnalysis]:
        try:
            data = self._complete_json("symptom_analysis", SYMPTOM_PROMPT, f"Symptoms: {symptoms}")
            return SymptomAnalysis(
                considerations=[str(c) for c in data["considerations"]],
                triage_level=str(data["triageLevel"]),
                follow_up_questions=[str(q) for q in data["followUpQuestions"]],
                summary=str(data["summary"]),
            )
        except Exception as e:
            logger.error(f"Symptom analysis unavailable: {e}")
            return None

    def draft_soap_note(self, transcript: str) -> Optional[SoapNote]:
        try:
            data = self._complete_json("soap_note", SOAP_PROMPT, f"Transcript: {transcript}")
            return SoapNote(
                subjective=str(data["subjective"]),
                objective=str(data["objective"]),
                assessment=str(data["assessment"]),
                plan=str(data["plan"]),
            )
        except Exception as e:
            logger.error(f"SOAP drafting unavailable: {e}")
            return None

    def _complete_json(self, task: str, system_prompt: str, user_content: str) -> Dict[str, Any]:
        client = self._get_client()
        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            response_format={"type": "json_object"},
            temperature=0.2,
        )

        text = response.choices[0].message.content
        if not text:
            raise AIServiceError("Empty response", task=task, model=self.model)
        try:
            data = json.loads(text.strip())
        except json.JSONDecodeError as e:
            raise AIServiceError(f"Malformed JSON: {e}", task=task, model=self.model) from e
        if not isinstance(data, dict):
            raise AIServiceError("Response is not a JSON object", task=task, model=self.model)
        return data
