"""Server — FastAPI app, configuration."""
