"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use ZENNIX_ prefix (e.g., ZENNIX_DEBOUNCE_DELAY=0.25).

Settings can also be loaded from a .env file in the project root.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use ZENNIX_ prefix. List values are given as JSON.

    Examples:
        ZENNIX_FORMATTER_COMMAND='["nixfmt", "--width=100"]'
        ZENNIX_PARSER_COMMAND='["nix-instantiate", "--parse", "-"]'
        ZENNIX_DEBOUNCE_DELAY=0.25
        ZENNIX_STRICT_MODE=true
    """

    model_config = SettingsConfigDict(
        env_prefix="ZENNIX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Masking configuration
    placeholder_prefix: str = Field(
        default="__ZEN_",
        description="Prefix for masking placeholders (must form a valid host-language identifier)",
    )

    placeholder_suffix: str = Field(
        default="__",
        description="Suffix for masking placeholders",
    )

    # Diagnostics configuration
    debounce_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Seconds of inactivity before the external parser check runs",
    )

    language_id: str = Field(
        default="zen-nix",
        description="Editor language identifier of dialect documents",
    )

    file_extensions: List[str] = Field(
        default_factory=lambda: [".zen.nix"],
        description="File name suffixes recognized as dialect source",
    )

    # External tools
    formatter_command: List[str] = Field(
        default_factory=lambda: ["nixfmt"],
        description="Host-language formatter; reads stdin, writes stdout",
    )

    parser_command: List[str] = Field(
        default_factory=lambda: ["nix-instantiate", "--parse", "-"],
        description="Host-language parser invoked in syntax-check-only mode",
    )

    # Reporting configuration
    strict_mode: bool = Field(
        default=False,
        description="Strict mode: the CLI exits non-zero when any diagnostic is found",
    )

    def placeHolder_make(self, kind: str, index: int, prefix: Optional[str] = None) -> str:
        """
        Generate a placeholder token for a masked construct.

        Args:
            kind: Placeholder kind tag (e.g., "VAR", "NODE", "LET_S")
            index: Running index, unique within one masking pass
            prefix: Override for placeholder_prefix (used when the default
                    prefix already occurs in the source text)

        Returns:
            Placeholder string (e.g., "__ZEN_VAR_0__")

        Example:
            >>> settings = AppSettings()
            >>> settings.placeHolder_make("NODE", 3)
            '__ZEN_NODE_3__'
        """
        return f"{prefix or self.placeholder_prefix}{kind}_{index}{self.placeholder_suffix}"


# Singleton instance - import this in your code
appsettings = AppSettings()
