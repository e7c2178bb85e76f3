"""FastAPI application package for TaskVault."""
