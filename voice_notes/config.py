"""
Runtime settings for Voice Notes.

Settings are read from environment variables at startup and can be
overridden by command-line flags. Credentials are never hard-coded.
"""

from dataclasses import dataclass, replace
from typing import Optional, List, Dict
import os


DEFAULT_PROVIDER = "gemini"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"

# provider name -> (env var holding its key, default model)
PROVIDER_DEFAULTS: Dict[str, tuple] = {
    "gemini": ("GEMINI_API_KEY", "gemini-1.5-flash"),
    "openai": ("OPENAI_API_KEY", "gpt-3.5-turbo"),
    "claude": ("ANTHROPIC_API_KEY", "claude-3-haiku-20240307"),
}


@dataclass
class Settings:
    """Configuration for the notes session and its completion provider."""
    provider: str = DEFAULT_PROVIDER
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: str = GEMINI_BASE_URL
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, provider: Optional[str] = None) -> "Settings":
        """
        Build settings from the environment.

        Args:
            provider: Provider name overriding VOICE_NOTES_PROVIDER

        Returns:
            Settings with the provider's key and model resolved.
        """
        name = (provider or os.getenv("VOICE_NOTES_PROVIDER") or DEFAULT_PROVIDER).lower()
        key_var, _ = PROVIDER_DEFAULTS.get(name, (None, None))

        return cls(
            provider=name,
            model=os.getenv("VOICE_NOTES_MODEL") or None,
            api_key=os.getenv(key_var) if key_var else None,
            base_url=os.getenv("VOICE_NOTES_GEMINI_URL", GEMINI_BASE_URL),
            log_level=os.getenv("VOICE_NOTES_LOG_LEVEL", "WARNING").upper(),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def resolved_model(self) -> str:
        """Model identifier to use, falling back to the provider default."""
        if self.model:
            return self.model
        return PROVIDER_DEFAULTS.get(self.provider, (None, ""))[1]

    def masked_api_key(self) -> str:
        """Render the API key for display without revealing it."""
        if not self.api_key:
            return "Not set"
        if len(self.api_key) <= 12:
            return "*" * len(self.api_key)
        return self.api_key[:8] + "..." + self.api_key[-4:]

    def validate(self) -> List[str]:
        """
        Validate the settings.

        Returns:
            List of error messages (empty if valid).
        """
        errors = []

        if self.provider not in PROVIDER_DEFAULTS:
            choices = ", ".join(sorted(PROVIDER_DEFAULTS))
            errors.append(f"Unknown provider '{self.provider}' (choose from {choices})")
        elif not self.api_key:
            key_var = PROVIDER_DEFAULTS[self.provider][0]
            errors.append(f"API key is not set. Export {key_var} to configure.")

        return errors

    def is_valid(self) -> bool:
        """Check if settings are valid."""
        return len(self.validate()) == 0
