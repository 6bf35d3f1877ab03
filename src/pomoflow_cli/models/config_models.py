"""Configuration models for Pomoflow.

Contexts select the storage backend (local SQLite vault or remote REST
endpoint); the remaining sections tune the API client, the timer and the
Pomodoro settings owned by the current user.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .pomodoro import PomodoroSettings


class APIConfig(BaseModel):
    """API configuration."""

    timeout: int = Field(default=30)
    retry: int = Field(default=0, ge=0)
    api_key: str | None = Field(default=None, description="Backend API key")


class TimerConfig(BaseModel):
    """Timer tick and session restore configuration."""

    tick_interval: float = Field(default=1.0, gt=0)
    stale_after_hours: int = Field(default=24, ge=1)
    restore_window_hours: int = Field(default=48, ge=1)


class OutputConfig(BaseModel):
    """Output configuration."""

    color: bool = Field(default=True)
    icons: bool = Field(default=True)


class Context(BaseModel):
    """Context configuration for a storage backend.

    Represents either a local SQLite vault or remote API endpoint.
    """

    name: str = Field(..., description="Unique context name")
    type: Literal["local", "remote"] = Field(..., description="Context type")
    source: str = Field(..., description="Database path or API URL")
    user: str | None = Field(default=None, description="User email (remote only)")
    user_id: str | None = Field(default=None, description="Owner of sessions")
    description: str = Field(default="", description="Human-readable description")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        """Validate source is not blank."""
        if not v or not v.strip():
            raise ValueError("source cannot be empty")
        return v.strip()


class AppConfig(BaseModel):
    """Main Pomoflow configuration"""

    current_context_name: str = Field(
        default="default", description="Active context name"
    )
    contexts: list[Context] = Field(
        default_factory=list, description="Available contexts"
    )

    api: APIConfig = Field(default_factory=APIConfig)
    timer: TimerConfig = Field(default_factory=TimerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    pomodoro: PomodoroSettings = Field(default_factory=PomodoroSettings)

    def get_context(self, name: str) -> Context:
        """Get context by name."""
        for ctx in self.contexts:
            if ctx.name == name:
                return ctx
        raise ValueError(f"Context '{name}' not found")

    def get_current_context(self) -> Context:
        """Get the currently active context."""
        return self.get_context(self.current_context_name)

    def add_context(self, context: Context):
        """Add a new context.

        Raises:
            ValueError: If context with the same name already exists
        """
        existing = [ctx for ctx in self.contexts if ctx.name == context.name]
        if existing:
            raise ValueError(
                f"Context '{context.name}' already exists."
                " Use a different name or remove the existing context first."
            )
        self.contexts.append(context)

    def remove_context(self, name: str):
        """Remove a context by name."""
        original_len = len(self.contexts)
        self.contexts = [ctx for ctx in self.contexts if ctx.name != name]
        if len(self.contexts) == original_len:
            raise ValueError(f"Context '{name}' not found")
        return True
