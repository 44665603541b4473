"""External AI provider clients."""

from .google_tts import GoogleTtsClient, parse_voices_payload

__all__ = ["GoogleTtsClient", "parse_voices_payload"]
