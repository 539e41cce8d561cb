"""Agentic responder configuration for CodeWhisper."""

from pydantic import BaseModel, Field


class AgentConfig(BaseModel):
    """Bounds for the tool-calling loop."""

    max_turns: int = Field(default=5, ge=1, le=20, description="Model turns per answer")
    model_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Wall-clock timeout per model call"
    )
    max_completion_tokens: int = Field(default=1024, ge=16)
    prompt_chunk_limit: int = Field(
        default=3, ge=0, description="Relevant chunks embedded in the system prompt"
    )
    prompt_file_limit: int = Field(
        default=15, ge=0, description="Files listed in the project structure section"
    )
    history_limit: int = Field(
        default=6, ge=0, description="Earlier conversation messages replayed to the model"
    )
