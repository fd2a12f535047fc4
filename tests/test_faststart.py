"""Tests for the remux / re-encode normalizer."""

import subprocess
from pathlib import Path

import pytest

from videos.faststart import Failed, FFmpegNormalizer, Reencoded, Remuxed


class FakeFFmpeg:
    """Stands in for subprocess.run; fails the attempts named in ``fail``."""

    def __init__(self, fail=()):
        self.fail = set(fail)
        self.commands = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        kind = "reencode" if "libx264" in cmd else "remux"
        dst = Path(cmd[-1])
        if kind in self.fail:
            dst.write_bytes(b"truncated")
            return subprocess.CompletedProcess(cmd, 1, b"", f"{kind}: Could not find tag for codec".encode())
        dst.write_bytes(kind.encode())
        return subprocess.CompletedProcess(cmd, 0, b"", b"")


@pytest.fixture
def source(tmp_path) -> Path:
    p = tmp_path / "upload.mp4"
    p.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return p


class TestFFmpegNormalizer:
    def test_remux_success(self, monkeypatch, source):
        ffmpeg = FakeFFmpeg()
        monkeypatch.setattr(subprocess, "run", ffmpeg)

        outcome = FFmpegNormalizer().normalize(source)

        assert isinstance(outcome, Remuxed)
        assert outcome.path == source.with_name("upload.mp4.faststart.mp4")
        assert outcome.path.read_bytes() == b"remux"
        assert outcome.artifacts == (outcome.path,)
        assert len(ffmpeg.commands) == 1

        cmd = ffmpeg.commands[0]
        assert cmd[cmd.index("-c") + 1] == "copy"
        assert cmd[cmd.index("-movflags") + 1] == "faststart"
        assert "0:a:0?" in cmd

    def test_falls_back_to_reencode(self, monkeypatch, source):
        ffmpeg = FakeFFmpeg(fail={"remux"})
        monkeypatch.setattr(subprocess, "run", ffmpeg)

        outcome = FFmpegNormalizer().normalize(source)

        assert isinstance(outcome, Reencoded)
        assert outcome.path == source.with_name("upload.mp4.reencode.mp4")
        assert outcome.path.read_bytes() == b"reencode"
        assert source.with_name("upload.mp4.faststart.mp4") in outcome.artifacts
        assert outcome.path in outcome.artifacts

        cmd = ffmpeg.commands[1]
        assert cmd[cmd.index("-vf") + 1] == "setsar=1"
        assert cmd[cmd.index("-crf") + 1] == "18"
        assert cmd[cmd.index("-preset") + 1] == "veryfast"
        assert cmd[cmd.index("-c:a") + 1] == "copy"
        assert cmd[cmd.index("-movflags") + 1] == "faststart"

    def test_both_attempts_fail(self, monkeypatch, source):
        monkeypatch.setattr(subprocess, "run", FakeFFmpeg(fail={"remux", "reencode"}))

        outcome = FFmpegNormalizer().normalize(source)

        assert isinstance(outcome, Failed)
        assert "reencode: Could not find tag for codec" in outcome.diagnostic
        assert len(outcome.artifacts) == 2

    def test_missing_binary(self, monkeypatch, source):
        def fake_run(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", fake_run)
        outcome = FFmpegNormalizer("no-such-ffmpeg").normalize(source)

        assert isinstance(outcome, Failed)
        assert "could not be started" in outcome.diagnostic

    def test_timeout_fails_attempt(self, monkeypatch, source):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(kwargs["timeout"])
            if len(calls) == 1:
                raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])
            Path(cmd[-1]).write_bytes(b"ok")
            return subprocess.CompletedProcess(cmd, 0, b"", b"")

        monkeypatch.setattr(subprocess, "run", fake_run)
        outcome = FFmpegNormalizer(timeout=5).normalize(source)

        assert isinstance(outcome, Reencoded)
        assert calls == [5, 5]

    def test_success_without_output_counts_as_failure(self, monkeypatch, source):
        monkeypatch.setattr(subprocess, "run", lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0, b"", b""))
        assert isinstance(FFmpegNormalizer().normalize(source), Failed)
