# backend/settings/__init__.py
"""
Settings package entrypoint.

Nothing is imported here. Use DJANGO_SETTINGS_MODULE to select:
- backend.settings.dev   (local development)
- backend.settings.test  (test runs)
- backend.settings.prod  (production)
"""
