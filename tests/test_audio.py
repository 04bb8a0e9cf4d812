"""
Tests for bollydle/audio.py — the ffplay output, with shell scripts standing in for
the player where a process has to run.
"""

import asyncio
import sys
import tempfile
import unittest
from pathlib import Path

from bollydle.audio import EVENTS, FfplayAudio
from bollydle.errors import AudioLoadError, PlaybackError

MISSING_BINARY = "bollydle-test-no-such-player"


class TestFfplayAudio(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.audio = FfplayAudio(ffplay=MISSING_BINARY, ffprobe=MISSING_BINARY)

    async def asyncTearDown(self):
        self.audio.close()

    def test_subscribe_and_unsubscribe(self):
        received = []
        unsubscribe = self.audio.subscribe("timeupdate", received.append)
        self.audio._emit("timeupdate", 1.5)
        unsubscribe()
        unsubscribe()
        self.audio._emit("timeupdate", 2.5)
        self.assertEqual(received, [1.5])

    def test_unknown_event(self):
        with self.assertRaises(KeyError):
            self.audio.subscribe("seeked", print)

    def test_seek_while_paused(self):
        self.audio.current_time = 3.25
        self.assertEqual(self.audio.current_time, 3.25)
        self.audio.current_time = -1
        self.assertEqual(self.audio.current_time, 0.0)

    async def test_load_without_source(self):
        with self.assertRaises(AudioLoadError):
            self.audio.load()

    async def test_load_resets_position(self):
        self.audio.source = "dil_se.mp3"
        self.audio.current_time = 4.0
        self.audio.load()
        self.assertEqual(self.audio.current_time, 0.0)
        self.assertIsNone(self.audio.duration)

    async def test_missing_player_raises_playback_error(self):
        self.audio.source = "dil_se.mp3"
        with self.assertRaises(PlaybackError):
            await self.audio.play()
        self.assertFalse(self.audio.playing)


def write_player(directory: Path, body: str) -> str:
    """Write an executable stand-in for ffplay that logs its arguments."""
    script = directory / "ffplay"
    script.write_text(f'#!/bin/sh\nprintf "%s\\n" "$*" >> "{directory / "calls.log"}"\n{body}\n')
    script.chmod(0o755)
    return str(script)


async def wait_until(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@unittest.skipIf(sys.platform == "win32", "stand-in player is a shell script")
class TestFfplayProcess(unittest.IsolatedAsyncioTestCase):
    """Runs FfplayAudio against shell scripts that behave like ffplay."""

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.directory = Path(tmp.name)
        self.events = {event: [] for event in EVENTS}
        self.audio = None

    def make_audio(self, body):
        self.audio = FfplayAudio(ffplay=write_player(self.directory, body), ffprobe=MISSING_BINARY, interval=0.02)
        self.audio.source = "dil_se.mp3"
        for event, received in self.events.items():
            self.audio.subscribe(event, lambda *args, received=received: received.append(args))
        return self.audio

    def calls(self):
        log = self.directory / "calls.log"
        return log.read_text().splitlines() if log.exists() else []

    async def asyncTearDown(self):
        if self.audio is not None:
            self.audio.close()

    async def test_time_updates_while_playing(self):
        audio = self.make_audio("exec sleep 5")
        await audio.play()
        self.assertTrue(audio.playing)

        await wait_until(lambda: len(self.events["timeupdate"]) >= 2)
        positions = [args[0] for args in self.events["timeupdate"]]
        self.assertEqual(positions, sorted(positions))
        self.assertGreater(positions[-1], 0.0)

        audio.pause()
        self.assertFalse(audio.playing)
        self.assertGreater(audio.current_time, 0.0)

    async def test_clean_exit_emits_ended(self):
        audio = self.make_audio("exit 0")
        await audio.play()

        await wait_until(lambda: self.events["ended"])
        self.assertFalse(audio.playing)
        self.assertEqual(self.events["playerror"], [])
        self.assertEqual(self.events["error"], [])

    async def test_failed_exit_emits_playerror(self):
        audio = self.make_audio('echo "dil_se.mp3: Invalid data found" >&2\nexit 1')
        await audio.play()

        await wait_until(lambda: self.events["playerror"])
        self.assertEqual(self.events["playerror"], [("dil_se.mp3: Invalid data found",)])
        self.assertEqual(self.events["ended"], [])
        self.assertEqual(self.events["error"], [])
        self.assertFalse(audio.playing)

    async def test_silent_failure_reports_exit_status(self):
        audio = self.make_audio("exit 3")
        await audio.play()

        await wait_until(lambda: self.events["playerror"])
        self.assertIn("exited with status 3", self.events["playerror"][0][0])

    async def test_pause_while_starting_abandons_process(self):
        audio = self.make_audio("exec sleep 5")
        pending = asyncio.create_task(audio.play())
        await asyncio.sleep(0)

        audio.pause()
        await pending
        self.assertFalse(audio.playing)

        await asyncio.sleep(0.1)
        self.assertFalse(audio.playing)
        self.assertEqual(self.events["timeupdate"], [])
        self.assertEqual(self.events["playerror"], [])

    async def test_seek_while_playing_restarts_at_offset(self):
        audio = self.make_audio("exec sleep 5")
        await audio.play()

        audio.current_time = 2.0
        await wait_until(lambda: audio.playing and any("-ss 2.000" in call for call in self.calls()))
        self.assertGreaterEqual(audio.current_time, 2.0)
        self.assertTrue(any(call.endswith("-ss 2.000 dil_se.mp3") for call in self.calls()))
        self.assertEqual(self.events["playerror"], [])

    async def test_failed_restart_after_seek_emits_playerror(self):
        audio = self.make_audio("exec sleep 5")
        await audio.play()

        audio._ffplay = MISSING_BINARY
        audio.current_time = 1.0
        await wait_until(lambda: self.events["playerror"])
        self.assertIn(MISSING_BINARY, self.events["playerror"][0][0])
        self.assertFalse(audio.playing)
        self.assertEqual(self.events["error"], [])
