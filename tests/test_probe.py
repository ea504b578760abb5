import json
import subprocess

from storage import probe


class Completed:
    def __init__(self, returncode, stdout=""):
        self.returncode = returncode
        self.stdout = stdout


def test_ffprobe_duration_is_used_when_available(monkeypatch):
    monkeypatch.setattr(
        probe.subprocess, "run",
        lambda *a, **kw: Completed(0, json.dumps({"format": {"duration": "12.34"}})),
    )
    monkeypatch.setattr(probe, "_duration_opencv", lambda path: 99.0)

    assert probe.probe_duration("clip.mp4") == 12.34


def test_falls_back_to_opencv_without_ffprobe(monkeypatch):
    def missing(*args, **kwargs):
        raise FileNotFoundError("ffprobe")

    monkeypatch.setattr(probe.subprocess, "run", missing)
    monkeypatch.setattr(probe, "_duration_opencv", lambda path: 3.0)

    assert probe.probe_duration("clip.mp4") == 3.0


def test_ffprobe_timeout_and_bad_output_fall_back(monkeypatch):
    monkeypatch.setattr(probe, "_duration_opencv", lambda path: None)

    def timeout(*args, **kwargs):
        raise subprocess.TimeoutExpired("ffprobe", 15)

    monkeypatch.setattr(probe.subprocess, "run", timeout)
    assert probe.probe_duration("clip.mp4") is None

    monkeypatch.setattr(probe.subprocess, "run", lambda *a, **kw: Completed(0, "not json"))
    assert probe.probe_duration("clip.mp4") is None

    monkeypatch.setattr(probe.subprocess, "run", lambda *a, **kw: Completed(1))
    assert probe.probe_duration("clip.mp4") is None


def test_opencv_reads_unopenable_file_as_none(tmp_path):
    assert probe._duration_opencv(str(tmp_path / "missing.mp4")) is None


def test_zero_length_ffprobe_result_is_kept(monkeypatch):
    monkeypatch.setattr(
        probe.subprocess, "run",
        lambda *a, **kw: Completed(0, json.dumps({"format": {"duration": "0.000000"}})),
    )
    monkeypatch.setattr(probe, "_duration_opencv", lambda path: 99.0)

    assert probe.probe_duration("clip.mp4") == 0.0
