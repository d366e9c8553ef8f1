"""Core audit data model, engine and orchestration."""
