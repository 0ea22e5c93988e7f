# =============================================================================
# medcore/ai/__init__.py
# AI Module for MedCore
# =============================================================================
"""
LLM-backed clinical helpers.

Usage:
    from medcore.ai import ClinicalAssistant

    assistant = ClinicalAssistant(api_key=settings.openai_api_key)
    note = assistant.draft_soap_note(transcript)   # None when unavailable
"""

from .clinical_assistant import (
    ClinicalAssistant,
    SoapNote,
    SymptomAnalysis,
)

__all__ = [
    "ClinicalAssistant",
    "SoapNote",
    "SymptomAnalysis",
]
