"""FinanZen: personal-finance diagnosis with Gemini and Google Sheets."""

__version__ = "1.0.0"
