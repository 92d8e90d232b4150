"""Mock speech-to-text.

The server accepts audio but returns one of a fixed set of sample utterances;
real transcription is handled in the browser or by an external service.
"""

from __future__ import annotations

import random

TRANSCRIPTION_CONFIDENCE = 0.95

SAMPLE_TRANSCRIPTIONS = [
    "I'd like to schedule an appointment for next Tuesday at 2 PM",
    "What are your business hours today?",
    "I need to cancel my appointment for tomorrow",
    "Do you accept walk-in customers?",
    "Can I speak to someone about your services?",
    "I'm having trouble with my recent order",
    "What's the wait time for appointments?",
    "Is Dr. Smith available this week?",
]


def transcribe(audio_data: str | None, *, rng: random.Random | None = None) -> str:
    """Return a sample transcription for *audio_data* (content is ignored)."""
    return (rng or random).choice(SAMPLE_TRANSCRIPTIONS)
