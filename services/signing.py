"""Signed direct-upload parameters for the media host."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import cloudinary.utils

from app.schemas import UploadConfig
from settings import Settings

logger = logging.getLogger(__name__)


class SigningNotConfigured(RuntimeError):
    """The media host secret is not available."""


class UploadSigner:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def sign(self, params_to_sign: Mapping[str, Any]) -> str:
        secret = self._settings.cloudinary_api_secret
        if not secret:
            raise SigningNotConfigured("Missing CLOUDINARY_API_SECRET environment variable")
        signature = cloudinary.utils.api_sign_request(dict(params_to_sign), secret)
        logger.debug("Signed upload parameters", extra={"record_type": "upload"})
        return signature

    def upload_config(self) -> UploadConfig:
        return UploadConfig(
            cloud_name=self._settings.cloudinary_cloud_name,
            api_key=self._settings.cloudinary_api_key,
            upload_preset=self._settings.cloudinary_upload_preset,
        )
