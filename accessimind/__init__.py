"""AccessiMind AI core: resilient Gemini calls and agent action decoding."""

__version__ = "1.0.0"
