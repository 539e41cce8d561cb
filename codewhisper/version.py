"""Version information for CodeWhisper."""

__version__ = "0.3.0"
