"""
Feature modules for TrailSurface.

Each feature is a self-contained module with:
- models.py / schemas.py - Pydantic models
- service.py - Business logic (optional)
- store.py - State storage backends (optional)
"""
