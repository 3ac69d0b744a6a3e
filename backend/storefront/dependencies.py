"""
Storefront Backend — Shared FastAPI Dependencies
==================================================

Configuration is built once per application and stored on `app.state`;
handlers reach it through these dependencies rather than a module global,
which keeps every test app fully isolated.
"""

from fastapi import Request

from storefront.config import Settings
from storefront.services.file_service import FileService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_service(request: Request) -> FileService:
    settings: Settings = request.app.state.settings
    return FileService(settings.uploads_root, settings.max_upload_size)
