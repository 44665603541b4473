"""Integration tests for clone and job history commands."""

from __future__ import annotations

import wave
from pathlib import Path

from typer.testing import CliRunner

from tests.fakes import USER_ID, USER_TOKEN
from voicedash.cli import app
from voicedash.credentials import CREDENTIALS_TABLE


def _write_wav(path: Path, seconds: float) -> Path:
    """Write a silent mono WAV file lasting `seconds`."""

    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(8000)
        wav_file.writeframes(b"\x00\x00" * int(seconds * 8000))
    return path


def test_create_clone_requires_sign_in(
    cli_harness,  # type: ignore[no-untyped-def]
    tmp_path: Path,
) -> None:
    """Anonymous clone creation is rejected."""

    sample = _write_wav(tmp_path / "sample.wav", 15)
    runner = CliRunner()

    result = runner.invoke(app, ["create-clone", "Anna", str(sample)])

    assert result.exit_code == 1
    assert "create-clone failed (unauthenticated)" in result.output


def test_create_clone_requires_elevenlabs_key(
    cli_harness,  # type: ignore[no-untyped-def]
    tmp_path: Path,
) -> None:
    """Signed-in users without a cloning key get a missing-credential error."""

    sample = _write_wav(tmp_path / "sample.wav", 15)
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["--access-token", USER_TOKEN, "create-clone", "Anna", str(sample)],
    )

    assert result.exit_code == 1
    assert "create-clone failed (missing_credential)" in result.output
    assert cli_harness.backend.objects == {}


def test_create_and_list_clones(
    cli_harness,  # type: ignore[no-untyped-def]
    tmp_path: Path,
) -> None:
    """Created clones start processing and appear in the listing."""

    cli_harness.backend.tables[CREDENTIALS_TABLE].append(
        {"user_id": USER_ID, "provider": "elevenlabs", "api_key": "el-key"}
    )
    sample = _write_wav(tmp_path / "sample.wav", 20)
    runner = CliRunner()

    created = runner.invoke(
        app,
        [
            "--access-token",
            USER_TOKEN,
            "create-clone",
            "Anna",
            str(sample),
            "--description",
            "Warm narrator",
        ],
    )
    duplicate = runner.invoke(
        app,
        ["--access-token", USER_TOKEN, "create-clone", "Anna", str(sample)],
    )
    listed = runner.invoke(app, ["--access-token", USER_TOKEN, "clones"])

    assert created.exit_code == 0, created.output
    assert "Created voice clone Anna (voice_clones-1) [processing]" in created.output
    assert duplicate.exit_code == 1
    assert "create-clone failed (conflict)" in duplicate.output
    assert listed.exit_code == 0, listed.output
    assert "[processing] Anna (voice_clones-1)" in listed.output
    assert "Warm narrator" in listed.output


def test_short_wav_sample_is_rejected(
    cli_harness,  # type: ignore[no-untyped-def]
    tmp_path: Path,
) -> None:
    """WAV samples shorter than 11 seconds are invalid files."""

    cli_harness.backend.tables[CREDENTIALS_TABLE].append(
        {"user_id": USER_ID, "provider": "elevenlabs", "api_key": "el-key"}
    )
    sample = _write_wav(tmp_path / "short.wav", 3)
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["--access-token", USER_TOKEN, "create-clone", "Anna", str(sample)],
    )

    assert result.exit_code == 1
    assert "create-clone failed (validation)" in result.output
    assert "outside 11-40 seconds" in result.output


def test_jobs_lists_history_and_requires_sign_in(
    cli_harness,  # type: ignore[no-untyped-def]
) -> None:
    """Job history lists rows for signed-in users only."""

    cli_harness.backend.tables["tts_jobs"].append(
        {
            "id": "job-9",
            "user_id": USER_ID,
            "voice_label": "vi-VN-Standard-A",
            "source_kind": "excel",
            "character_count": 300,
            "row_count": 12,
            "status": "completed",
            "audio_url": "tts-output/job-9.mp3",
            "created_at": "2026-02-01T08:00:00Z",
        }
    )
    runner = CliRunner()

    anonymous = runner.invoke(app, ["jobs"])
    signed_in = runner.invoke(app, ["--access-token", USER_TOKEN, "jobs"])

    assert anonymous.exit_code == 1
    assert "jobs failed (unauthenticated)" in anonymous.output
    assert signed_in.exit_code == 0, signed_in.output
    assert "[completed] 2026-02-01T08:00:00Z" in signed_in.output
    assert "rows=12" in signed_in.output
