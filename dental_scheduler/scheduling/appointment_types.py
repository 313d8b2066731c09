"""Dental appointment type catalog with default durations."""

import logging
from typing import Optional

from dental_scheduler.config import settings

logger = logging.getLogger(__name__)

APPOINTMENT_TYPES: dict[str, dict] = {
    "cleaning": {
        "name": "Cleaning & Hygiene",
        "duration_minutes": 60,
    },
    "exam": {
        "name": "Routine Exam",
        "duration_minutes": 30,
    },
    "consultation": {
        "name": "Consultation",
        "duration_minutes": 30,
    },
    "filling": {
        "name": "Filling",
        "duration_minutes": 60,
    },
    "crown": {
        "name": "Crown",
        "duration_minutes": 90,
    },
    "root canal": {
        "name": "Root Canal",
        "duration_minutes": 90,
    },
    "extraction": {
        "name": "Extraction",
        "duration_minutes": 60,
    },
    "emergency": {
        "name": "Emergency Visit",
        "duration_minutes": 30,
    },
}

APPOINTMENT_ALIASES: dict[str, str] = {
    "hygiene": "cleaning", "prophy": "cleaning", "scale and polish": "cleaning",
    "checkup": "exam", "check-up": "exam", "recall": "exam",
    "consult": "consultation", "new patient": "consultation",
    "cavity": "filling", "restoration": "filling",
    "cap": "crown",
    "endo": "root canal", "endodontic": "root canal",
    "pull": "extraction", "wisdom tooth": "extraction",
    "toothache": "emergency", "broken tooth": "emergency",
    "swelling": "emergency", "pain": "emergency",
}


def match_appointment_type(query: str) -> Optional[str]:
    """Match free text to an appointment type ID. Returns None if no match."""
    normalized = query.lower().strip()
    if normalized in APPOINTMENT_TYPES:
        return normalized
    for alias, type_id in APPOINTMENT_ALIASES.items():
        if alias in normalized:
            return type_id
    for type_id in APPOINTMENT_TYPES:
        if type_id in normalized:
            return type_id
    return None


def get_default_duration(appointment_type: str) -> int:
    """Catalog duration for a type, or the practice default when unknown."""
    type_id = match_appointment_type(appointment_type)
    if type_id is None:
        logger.debug(
            "Unknown appointment type %r, using default duration", appointment_type
        )
        return settings.practice.default_duration_minutes
    return APPOINTMENT_TYPES[type_id]["duration_minutes"]


def get_display_name(appointment_type: str) -> str:
    """Catalog name for a type, or the caller's text when unknown."""
    type_id = match_appointment_type(appointment_type)
    if type_id is None:
        return appointment_type
    return APPOINTMENT_TYPES[type_id]["name"]
