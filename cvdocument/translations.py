"""
Localized labels for exporters, verifier messages and assistant rationales.

The document language (CVDocument.language) selects the table; unknown
languages fall back to Danish.
"""

from __future__ import annotations

from typing import Dict

from .locales import DEFAULT_LANGUAGE

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "experience": "EXPERIENCE",
        "education": "Education",
        "skills": "Skills",
        "languages": "Languages",
        "profile": "Profile",
        "key_milestones": "KEY RESPONSIBILITIES",
        "personal_data": "Personal details",
        "birth_year": "Year of birth",
        "nationality": "Nationality",
        "drivers_license": "Driver's license",
        "present": "Present",
        "language_name": "English",
        "recommended_max_lines": "We recommend max {n} lines.",
        "recommended_max_bullets": "We recommend max {n} bullets.",
        "recommended_max_chars": "We recommend max {n} characters per bullet.",
        "rationale_rewrite-intro": "Refined from your original text",
        "rationale_generate-intro-from-experience": "Generated from the experience in your CV",
        "rationale_generate-milestones": "Summarized from your existing bullets",
        "rationale_rewrite-bullet": "Rewritten for clarity",
        "rationale_tighten-text": "Shortened without losing information",
    },
    "da": {
        "experience": "ERFARING",
        "education": "Uddannelse",
        "skills": "Kompetencer",
        "languages": "Sprog",
        "profile": "Profil",
        "key_milestones": "NØGLEOPGAVER",
        "personal_data": "Personlige oplysninger",
        "birth_year": "Fødselsår",
        "nationality": "Nationalitet",
        "drivers_license": "Kørekort",
        "present": "Nu",
        "language_name": "Danish",
        "recommended_max_lines": "Vi anbefaler maks {n} linjer.",
        "recommended_max_bullets": "Vi anbefaler maks {n} punkter.",
        "recommended_max_chars": "Vi anbefaler maks {n} tegn pr. punkt.",
        "rationale_rewrite-intro": "Optimeret baseret på din originale tekst",
        "rationale_generate-intro-from-experience": "Genereret fra din erfaring i CV'et",
        "rationale_generate-milestones": "Sammenfattet fra dine eksisterende punkter",
        "rationale_rewrite-bullet": "Omskrevet for klarhed",
        "rationale_tighten-text": "Forkortet uden tab af information",
    },
}


def get_translations(language: str) -> Dict[str, str]:
    return TRANSLATIONS.get(language) or TRANSLATIONS[DEFAULT_LANGUAGE]


def t(language: str, key: str, **replacements) -> str:
    """Translate key; missing keys fall back to Danish, then to the key itself."""
    text = get_translations(language).get(key) or TRANSLATIONS[DEFAULT_LANGUAGE].get(key, key)
    for name, value in replacements.items():
        text = text.replace("{" + name + "}", str(value))
    return text
