"""Tests for the keyword intent classifier."""

from __future__ import annotations

import pytest

from receptionist.conversation.intents import INTENT_RULES, Intent, classify_intent


class TestClassification:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("I'd like to schedule an appointment for next Tuesday at 2 PM", Intent.APPOINTMENT),
            ("Can I book a slot?", Intent.APPOINTMENT),
            ("What are your business hours today?", Intent.HOURS),
            ("When do you close on Saturday?", Intent.HOURS),
            ("I need to cancel", Intent.CANCEL),
            ("Do you take my insurance?", Intent.BILLING),
            ("What does a cleaning cost?", Intent.BILLING),
            ("What's the wait time right now?", Intent.WAIT_TIME),
            ("How long will I wait?", Intent.WAIT_TIME),
            ("Can I speak to someone about your services?", Intent.GENERAL),
        ],
    )
    def test_examples(self, message, expected):
        assert classify_intent(message) == expected

    def test_case_insensitive(self):
        assert classify_intent("BOOK ME IN") == Intent.APPOINTMENT

    def test_empty_message_is_general(self):
        assert classify_intent("") == Intent.GENERAL


class TestPrecedence:
    def test_appointment_beats_cancel(self):
        message = "book an appointment but first let me cancel the old one"
        assert classify_intent(message) == Intent.APPOINTMENT

    def test_cancel_appointment_is_still_appointment(self):
        # "appointment" is checked before "cancel".
        assert classify_intent("I need to cancel my appointment for tomorrow") == Intent.APPOINTMENT

    @pytest.mark.parametrize("keyword", ["appointment", "schedule", "book"])
    def test_booking_keyword_wins_over_every_other_rule(self, keyword):
        message = f"{keyword} - also hours, cancel, insurance, wait time?"
        assert classify_intent(message) == Intent.APPOINTMENT

    def test_hours_beats_cancel_and_billing(self):
        assert classify_intent("are you open? I may cancel, what's the cost") == Intent.HOURS

    def test_cancel_beats_billing(self):
        assert classify_intent("cancel, is there a payment fee?") == Intent.CANCEL

    def test_substring_match(self):
        # "reopen" contains "open": rules are plain substring checks.
        assert classify_intent("when do you reopen") == Intent.HOURS

    def test_rule_order_is_fixed(self):
        assert [intent for _, intent in INTENT_RULES] == [
            Intent.APPOINTMENT,
            Intent.HOURS,
            Intent.CANCEL,
            Intent.BILLING,
            Intent.WAIT_TIME,
        ]
