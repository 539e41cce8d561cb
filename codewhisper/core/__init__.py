"""Core domain models, types and configuration for CodeWhisper."""
