"""
Tests for bollydle/guess.py — attempt history and win/loss detection.
"""

import unittest

from bollydle.config import MAX_ATTEMPTS
from bollydle.guess import GuessEvent, GuessSession
from bollydle.models import Outcome, Track

KKKG = Track(id=0, title="Kabhi Khushi Kabhie Gham", audio_ref="kkkg.mp3")
DCH = Track(id=1, title="Dil Chahta Hai", audio_ref="dch.mp3")


class TestGuessSession(unittest.TestCase):

    def test_initial_state(self):
        session = GuessSession(KKKG)
        self.assertEqual(session.outcome, Outcome.IN_PROGRESS)
        self.assertEqual(session.attempt_count, 0)
        self.assertEqual(session.input_text, "")
        self.assertEqual(session.attempt_labels(), [""] * MAX_ATTEMPTS)

    def test_correct_guess_any_casing_wins(self):
        session = GuessSession(KKKG)
        session.skip()
        self.assertEqual(session.submit_guess("Dil Se"), GuessEvent.MISSED)
        self.assertEqual(session.submit_guess("kabhi KHUSHI kabhie gham"), GuessEvent.WON)
        self.assertEqual(session.outcome, Outcome.WON)
        self.assertEqual(session.attempt_count, 3)

    def test_six_misses_lose_and_further_guesses_ignored(self):
        session = GuessSession(DCH)
        events = [session.submit_guess(f"wrong {i}") for i in range(MAX_ATTEMPTS)]
        self.assertEqual(events[:-1], [GuessEvent.MISSED] * (MAX_ATTEMPTS - 1))
        self.assertEqual(events[-1], GuessEvent.LOST)
        self.assertEqual(session.outcome, Outcome.LOST)

        self.assertEqual(session.submit_guess("Dil Chahta Hai"), GuessEvent.IGNORED)
        self.assertEqual(session.skip(), GuessEvent.IGNORED)
        self.assertEqual(session.attempt_count, MAX_ATTEMPTS)
        self.assertEqual(session.outcome, Outcome.LOST)

    def test_won_is_terminal(self):
        session = GuessSession(DCH)
        session.submit_guess("Dil Chahta Hai")
        self.assertEqual(session.submit_guess("anything"), GuessEvent.IGNORED)
        self.assertEqual(session.skip(), GuessEvent.IGNORED)
        self.assertEqual(session.attempt_count, 1)

    def test_blank_guess_is_ignored(self):
        session = GuessSession(DCH)
        session.set_input("   ")
        self.assertEqual(session.submit_guess(), GuessEvent.IGNORED)
        self.assertEqual(session.submit_guess(""), GuessEvent.IGNORED)
        self.assertEqual(session.attempt_count, 0)
        self.assertEqual(session.input_text, "   ")

    def test_submit_uses_and_clears_pending_input(self):
        session = GuessSession(DCH)
        session.set_input("Dil Se")
        self.assertEqual(session.submit_guess(), GuessEvent.MISSED)
        self.assertEqual(session.input_text, "")
        self.assertEqual(session.attempts[0].text, "Dil Se")

    def test_skip_never_wins(self):
        session = GuessSession(DCH)
        events = [session.skip() for _ in range(MAX_ATTEMPTS)]
        self.assertEqual(events[-1], GuessEvent.LOST)
        self.assertTrue(all(attempt.skipped for attempt in session.attempts))
        self.assertEqual(session.attempt_labels(), ["Skipped"] * MAX_ATTEMPTS)

    def test_attempts_never_exceed_budget(self):
        session = GuessSession(DCH)
        for index in range(20):
            if index % 2:
                session.skip()
            else:
                session.submit_guess("nope")
            self.assertLessEqual(session.attempt_count, MAX_ATTEMPTS)
        self.assertEqual(session.remaining_attempts, 0)

    def test_clear_input_is_idempotent(self):
        session = GuessSession(DCH)
        session.set_input("Dil")
        session.clear_input()
        self.assertEqual(session.input_text, "")
        session.clear_input()
        self.assertEqual(session.input_text, "")
        self.assertEqual(session.attempt_count, 0)

    def test_labels_mix_guesses_and_skips(self):
        session = GuessSession(DCH)
        session.submit_guess("Dil Se")
        session.skip()
        self.assertEqual(session.attempt_labels(), ["Dil Se", "Skipped", "", "", "", ""])
