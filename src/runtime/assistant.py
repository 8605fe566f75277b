"""
Operator assistant: contextual help and emergency summaries.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from classifiers.base import Responder
from errors import ClassificationError
from models.event import DATE_FORMAT, TIME_FORMAT
from models.snapshot import Snapshot

HELP_FALLBACK = "Sorry, I couldn't fetch help for that topic. Please try again."


class Assistant:
    def __init__(self, help_responder: Responder, summary_responder: Responder):
        self.help_responder = help_responder
        self.summary_responder = summary_responder

    def contextual_help(self, feature_name: str) -> str:
        if not feature_name or not feature_name.strip():
            raise ValueError("feature_name is required")
        try:
            return self.help_responder.respond(feature_name=feature_name.strip())
        except ClassificationError as e:
            logging.error(f"Error getting contextual help for '{feature_name}': {e}")
            return HELP_FALLBACK

    def summarize_emergency(
        self,
        label: str,
        treatment: str,
        image: Optional[Snapshot],
        when: datetime,
    ) -> str:
        """Raises ClassificationError when the responder fails."""
        return self.summary_responder.respond(
            emergency_type=label,
            suggested_treatment=treatment,
            image=image,
            date=when.strftime(DATE_FORMAT),
            time=when.strftime(TIME_FORMAT),
        )
