"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
voice listings, clone and job tables, credential status, and usage summaries.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .credentials import mask_secret
from .errors import DashboardError
from .models.datatypes import (
    CLONE_STATUS_ERROR,
    CLONE_STATUS_READY,
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FAILED,
    TtsJob,
    UserUsage,
    VoiceCatalogEntry,
    VoiceClone,
)


_BADGE_COLORS = {
    CLONE_STATUS_READY: typer.colors.GREEN,
    CLONE_STATUS_ERROR: typer.colors.RED,
    JOB_STATUS_COMPLETED: typer.colors.GREEN,
    JOB_STATUS_FAILED: typer.colors.RED,
}


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, DashboardError):
        typer.secho(
            f"{command_name} failed ({exc.kind}): {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def status_badge(status: str) -> str:
    """Return a colored `[status]` badge."""

    return typer.style(f"[{status}]", fg=_BADGE_COLORS.get(status, typer.colors.YELLOW))


def echo_credential_status(provider_id: str, api_key: str | None, scope: str) -> None:
    """Print a masked credential row."""

    typer.echo(f"{provider_id} API key ({scope}): {mask_secret(api_key)}")


def echo_voice_list(voices: list[VoiceCatalogEntry]) -> None:
    """Print one voice per line with languages, gender, and sample rate."""

    if not voices:
        typer.echo("No voices match the current filters.")
        return
    for voice in voices:
        languages = ",".join(voice.language_codes)
        typer.echo(
            f"{voice.name}  {voice.gender}  {languages}  {voice.natural_sample_rate_hertz} Hz"
        )


def echo_language_list(languages: list[str]) -> None:
    """Print one language tag per line."""

    for language in languages:
        typer.echo(language)


def echo_clone_list(clones: list[VoiceClone]) -> None:
    """Print clone rows, newest first as returned by the registry."""

    if not clones:
        typer.echo("No voice clones yet.")
        return
    for clone in clones:
        description = f"  {clone.description}" if clone.description else ""
        typer.echo(
            f"{status_badge(clone.status)} {clone.name} ({clone.id})  "
            f"chars={clone.character_usage}  created={clone.created_at}{description}"
        )


def echo_job_list(jobs: list[TtsJob]) -> None:
    """Print job history rows with status badges."""

    if not jobs:
        typer.echo("No jobs yet.")
        return
    for job in jobs:
        rows = f"  rows={job.row_count}" if job.row_count is not None else ""
        audio = f"  audio={job.audio_url}" if job.audio_url else ""
        typer.echo(
            f"{status_badge(job.status)} {job.created_at}  voice={job.voice_label}  "
            f"source={job.source_kind}  chars={job.character_count}{rows}{audio}"
        )


def echo_usage_summary(usage: UserUsage) -> None:
    """Print plan usage counters."""

    typer.echo(f"Plan: {usage.plan}")
    typer.echo(f"Voice clones: {usage.voice_clone_count} / {usage.voice_clone_limit}")
    typer.echo(f"Characters: {usage.character_count} / {usage.character_limit}")
