"""ApexxCloud - Python SDK for the ApexxCloud Storage API."""

__version__ = "1.0.35"

import logging

from apexxcloud.auth import RequestSigner, SignedRequest
from apexxcloud.client import ApexxCloud, BucketOperations, FileOperations
from apexxcloud.config import ClientConfig, load_config
from apexxcloud.errors import (
    ApexxCloudError,
    ApiError,
    ConfigurationError,
    TransportError,
    UnsupportedOperationError,
    ValidationError,
)
from apexxcloud.models import Part
from apexxcloud.signed_url import SignedUrlType

# Records go to the "apexxcloud" logger tree; the application decides where.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ApexxCloud",
    "ApexxCloudError",
    "ApiError",
    "BucketOperations",
    "ClientConfig",
    "ConfigurationError",
    "FileOperations",
    "Part",
    "RequestSigner",
    "SignedRequest",
    "SignedUrlType",
    "TransportError",
    "UnsupportedOperationError",
    "ValidationError",
    "load_config",
]
