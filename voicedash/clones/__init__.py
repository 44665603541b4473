"""Voice clone registry."""

from .registry import AudioUpload, VoiceCloneRegistry, summarize_usage, validate_audio_upload

__all__ = ["AudioUpload", "VoiceCloneRegistry", "summarize_usage", "validate_audio_upload"]
