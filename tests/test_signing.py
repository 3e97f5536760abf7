from __future__ import annotations

import hashlib
from dataclasses import replace

import pytest

from services.signing import SigningNotConfigured, UploadSigner


def test_sign_sorts_parameters(settings) -> None:
    signer = UploadSigner(settings)

    signature = signer.sign({"timestamp": 1700000000, "folder": "lrs"})

    expected = hashlib.sha1(b"folder=lrs&timestamp=1700000000top-secret").hexdigest()
    assert signature == expected


def test_sign_without_secret(settings) -> None:
    signer = UploadSigner(replace(settings, cloudinary_api_secret=None))

    with pytest.raises(SigningNotConfigured, match="CLOUDINARY_API_SECRET"):
        signer.sign({"timestamp": 1})


def test_upload_config_omits_secret(settings) -> None:
    config = UploadSigner(settings).upload_config()

    assert config.cloud_name == "demo-cloud"
    assert "top-secret" not in config.model_dump_json()
