"""Command-line interface for CodeWhisper."""
