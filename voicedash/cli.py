"""Command-line interface for voicedash.

Responsibilities:
- Expose user-facing commands for sign-in, provider credentials, voice
  listing, TTS submissions, voice clones, and job history.
- Resolve config and session per invocation and render dashboard errors.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    echo_clone_list,
    echo_credential_status,
    echo_job_list,
    echo_language_list,
    echo_usage_summary,
    echo_voice_list,
    exit_with_command_error,
    status_badge,
)
from .cli_runtime import CliOptions, DashboardRuntime, build_runtime
from .clones.registry import AudioUpload, summarize_usage
from .credentials import stored_credentials, validate_provider_id
from .errors import TransportError, ValidationError
from .io.local_store import KeyringKeyValueStore, create_local_store
from .jobs.form import (
    VOICE_SOURCE_CLONE,
    VOICE_SOURCE_GOOGLE,
    JobFormInput,
    JobSubmissionForm,
)
from .jobs.sources import load_content_source
from .models.datatypes import PROVIDER_IDS, SOURCE_TEXT
from .parsing import normalize_optional_string
from .session import require_backend, require_identity, sign_in, sign_out
from .telemetry.logger import configure_logging
from .voices.filtering import available_languages, filter_voices

app = typer.Typer(
    name="voicedash",
    no_args_is_help=True,
    help="Voice cloning and text-to-speech dashboard CLI.",
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Optional YAML config file."),
    ] = None,
    access_token: Annotated[
        str | None,
        typer.Option(
            "--access-token",
            help="Platform access token (overrides the stored session).",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log informational events to stderr."),
    ] = False,
) -> None:
    """Capture global options for subcommands."""

    configure_logging("INFO" if verbose else "WARNING")
    ctx.obj = CliOptions(config_path=config_file, access_token=access_token, verbose=verbose)


def _runtime(ctx: typer.Context) -> DashboardRuntime:
    """Build the per-invocation runtime from captured global options."""

    options = ctx.obj if isinstance(ctx.obj, CliOptions) else CliOptions()
    return build_runtime(options, local_store_factory=create_local_store)


@app.command("login")
def login_command(
    ctx: typer.Context,
    email: Annotated[
        str | None,
        typer.Option("--email", help="Account email; prompted when omitted."),
    ] = None,
) -> None:
    """Sign in and store the session token on this device."""

    try:
        runtime = _runtime(ctx)
        backend = require_backend(runtime.backend)
        resolved_email = normalize_optional_string(email) or typer.prompt("Email").strip()
        password = typer.prompt("Password", hide_input=True)
        identity = sign_in(
            backend,
            runtime.local_store,
            email=resolved_email,
            password=password,
        )
    except Exception as exc:
        exit_with_command_error("login", exc)

    typer.echo(f"Signed in as {identity.email or identity.user_id}.")


@app.command("logout")
def logout_command(ctx: typer.Context) -> None:
    """Forget the stored session token."""

    try:
        runtime = _runtime(ctx)
        removed = sign_out(runtime.backend, runtime.local_store)
    except Exception as exc:
        exit_with_command_error("logout", exc)

    if removed:
        typer.echo("Signed out.")
    else:
        typer.echo("No stored session found.")


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show session, credential, and usage status."""

    try:
        runtime = _runtime(ctx)
        session = runtime.session()
        stored_keys = {
            credential.provider_id: credential.api_key
            for credential in stored_credentials(runtime.credential_store())
        }
        usage = None
        if session.is_authenticated:
            usage = summarize_usage(runtime.clone_registry().list())
    except Exception as exc:
        exit_with_command_error("status", exc)

    backend_state = "configured" if runtime.backend is not None else "not configured"
    typer.echo(f"Platform backend: {backend_state}")
    if isinstance(runtime.local_store, KeyringKeyValueStore):
        availability = "available" if runtime.local_store.is_available() else "unavailable"
        typer.echo(f"Local credential storage: {availability}")
    if session.is_authenticated:
        identity = require_identity(session, "show status")
        typer.echo(f"Session: signed in as {identity.email or identity.user_id}")
        scope = "account"
    else:
        typer.echo("Session: anonymous")
        scope = "device"
    for provider in PROVIDER_IDS:
        echo_credential_status(provider, stored_keys.get(provider), scope)
    if usage is not None:
        echo_usage_summary(usage)


@app.command("credentials")
def credentials_command(
    ctx: typer.Context,
    provider: Annotated[
        str,
        typer.Option("--provider", help="Provider id: elevenlabs or google."),
    ],
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for the API key with hidden input and store it.",
        ),
    ] = False,
) -> None:
    """Show or set the stored API key for one provider."""

    try:
        provider_id = validate_provider_id(provider)
        runtime = _runtime(ctx)
        session = runtime.session()
        credential_store = runtime.credential_store()
        scope = "account" if session.is_authenticated else "device"
        if set_api_key:
            prompted = normalize_optional_string(
                typer.prompt(
                    f"{provider_id} API key (hidden input)",
                    default="",
                    hide_input=True,
                    show_default=False,
                )
            )
            if prompted is None:
                raise ValidationError(
                    "No API key entered.",
                    field="api_key",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                )
            if not credential_store.set(provider_id, prompted):
                raise TransportError(
                    f"Failed to store the {provider_id} API key.",
                    hint="Check local keyring setup or platform connectivity and retry.",
                )
            typer.echo(f"Stored {provider_id} API key ({scope}).")
            return
        stored = credential_store.get(provider_id)
    except Exception as exc:
        exit_with_command_error("credentials", exc)

    echo_credential_status(provider_id, stored, scope)


@app.command("voices")
def voices_command(
    ctx: typer.Context,
    language: Annotated[
        str | None,
        typer.Option("--language", help="Language tag filter, e.g. `vi-VN`."),
    ] = None,
    gender: Annotated[
        str | None,
        typer.Option("--gender", help="Gender filter: ALL, FEMALE, MALE, or NEUTRAL."),
    ] = None,
    languages_only: Annotated[
        bool,
        typer.Option("--languages-only", help="List available language tags only."),
    ] = False,
) -> None:
    """List Google TTS voices for the current session."""

    try:
        runtime = _runtime(ctx)
        voices = runtime.catalog_fetcher().fetch()
        if languages_only:
            languages = available_languages(voices)
        else:
            selected_language = (
                normalize_optional_string(language) or runtime.config.default_language_filter
            )
            selected_gender = (
                gender if gender is not None else runtime.config.default_gender_filter
            )
            matches = filter_voices(voices, selected_language, selected_gender)
    except Exception as exc:
        exit_with_command_error("voices", exc)

    if languages_only:
        echo_language_list(languages)
    else:
        echo_voice_list(matches)


@app.command("tts")
def tts_command(
    ctx: typer.Context,
    source: Annotated[
        str,
        typer.Option("--source", help="Content source: text, txt, or excel."),
    ] = SOURCE_TEXT,
    text: Annotated[
        str | None,
        typer.Option("--text", help="Inline text for `--source text`."),
    ] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", help="Source file for `--source txt|excel`."),
    ] = None,
    voice_source: Annotated[
        str,
        typer.Option("--voice-source", help="Voice source: clone or google."),
    ] = VOICE_SOURCE_GOOGLE,
    clone_id: Annotated[
        str | None,
        typer.Option("--clone-id", help="Voice clone id for `--voice-source clone`."),
    ] = None,
    voice: Annotated[
        str | None,
        typer.Option("--voice", help="Google voice name for `--voice-source google`."),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option("--language", help="Output language label."),
    ] = None,
    segment_size: Annotated[
        int | None,
        typer.Option("--segment-size", help="Segment size between 100 and 300."),
    ] = None,
    record: Annotated[
        bool,
        typer.Option("--record", help="Record the accepted submission in job history."),
    ] = False,
) -> None:
    """Validate a TTS submission and optionally record it as a job."""

    try:
        runtime = _runtime(ctx)
        form = JobSubmissionForm(catalog_fetcher_factory=runtime.catalog_fetcher)
        payload = form.submit(
            JobFormInput(
                source_kind=source,
                voice_source=voice_source,
                text=text,
                source_path=file,
                clone_id=clone_id,
                catalog_voice=voice,
                language=(
                    language if language is not None else runtime.config.default_output_language
                ),
                segment_size=(
                    segment_size if segment_size is not None else runtime.config.segment_size
                ),
            )
        )
        content = load_content_source(
            payload.source_kind,
            text=payload.text,
            path=payload.source_path,
        )
        job = None
        if record:
            voice_label = payload.voice.identifier
            if payload.voice.source == VOICE_SOURCE_CLONE:
                clones = {clone.id: clone.name for clone in runtime.clone_registry().list()}
                voice_label = clones.get(payload.voice.identifier, voice_label)
            job = runtime.job_history().record_submission(payload, content, voice_label)
    except Exception as exc:
        exit_with_command_error("tts", exc)

    typer.echo("Submission accepted.")
    typer.echo(
        f"Source: {payload.source_kind} ({len(content.segments)} segment(s), "
        f"{content.character_count} characters)"
    )
    typer.echo(f"Voice: {payload.voice.source}:{payload.voice.identifier}")
    typer.echo(f"Language: {payload.language}")
    typer.echo(f"Segment size: {payload.segment_size}")
    if job is not None:
        typer.echo(f"Recorded job {job.id} {status_badge(job.status)}")


@app.command("clones")
def clones_command(ctx: typer.Context) -> None:
    """List voice clones for the signed-in user."""

    try:
        clones = _runtime(ctx).clone_registry().list()
    except Exception as exc:
        exit_with_command_error("clones", exc)

    echo_clone_list(clones)


@app.command("create-clone")
def create_clone_command(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Voice clone display name.")],
    audio: Annotated[Path, typer.Argument(help="Voice sample (MP3, WAV, or M4A).")],
    description: Annotated[
        str | None,
        typer.Option("--description", help="Optional clone description."),
    ] = None,
) -> None:
    """Upload a voice sample and create a voice clone."""

    try:
        registry = _runtime(ctx).clone_registry()
        clone = registry.create(name, description, AudioUpload.from_path(audio))
    except Exception as exc:
        exit_with_command_error("create-clone", exc)

    typer.echo(f"Created voice clone {clone.name} ({clone.id}) {status_badge(clone.status)}")


@app.command("jobs")
def jobs_command(ctx: typer.Context) -> None:
    """List TTS job history for the signed-in user."""

    try:
        jobs = _runtime(ctx).job_history().list_jobs()
    except Exception as exc:
        exit_with_command_error("jobs", exc)

    echo_job_list(jobs)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
