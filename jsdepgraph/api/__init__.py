"""FastAPI application exposing repository scans and graph export."""
