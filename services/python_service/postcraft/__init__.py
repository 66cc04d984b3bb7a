"""Article-to-graphic generation pipeline used by the FastAPI service in main.py."""

__version__ = "0.3.0"
