"""ApexxCloud storage client.

``ApexxCloud`` turns typed call arguments into signed requests against the
``/api/v1/files`` API and hands them to an ``httpx.AsyncClient``. File
operations live under ``client.files`` and bucket operations under
``client.bucket``; both share the client's immutable configuration, signer
and HTTP client.

Every request starts its query string with ``bucket_name`` and ``region``
and appends operation-specific parameters in a fixed order. The signature
covers the path *with* that query string, so the order is part of the wire
contract.

Example::

    async with ApexxCloud("AK", "SK", region="eu-west-1", bucket="media") as client:
        await client.files.upload(b"hello", key="greetings/hello.txt")
        url = await client.generate_signed_url("delete", key="greetings/hello.txt")
"""

import logging
import time
from typing import Any, Mapping, Sequence

import httpx

from apexxcloud import metrics
from apexxcloud.auth import RequestSigner, encode_query, iso_timestamp
from apexxcloud.config import DEFAULT_BASE_URL, ClientConfig
from apexxcloud.errors import ApiError
from apexxcloud.models import FileData, Part, serialize_parts
from apexxcloud.signed_url import OPERATIONS, SignedUrlOptions, SignedUrlType, parse_type
from apexxcloud.validation import (
    or_default,
    require,
    require_parts,
    require_payload,
    resolve,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_VISIBILITY = "public"
DEFAULT_PREFIX = ""
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20

FILES_PATH = "/api/v1/files"


class ApexxCloud:
    """Client for the ApexxCloud Storage API.

    Attributes:
        config: The immutable client configuration.
        files: File and multipart operations.
        bucket: Bucket listing operations.
    """

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        *,
        region: str | None = None,
        bucket: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create a client.

        Args:
            access_key: ApexxCloud access key.
            secret_key: ApexxCloud secret key.
            region: Default region for operations that do not name one.
            bucket: Default bucket for operations that do not name one.
            base_url: API host. Defaults to the public endpoint.
            http_client: Optional preconfigured ``httpx.AsyncClient``. The
                caller keeps ownership of a client passed in here.

        Raises:
            ConfigurationError: If either key is missing or empty.
        """
        config = ClientConfig(
            access_key=access_key,
            secret_key=secret_key,
            base_url=base_url.rstrip("/"),
            region=region,
            default_bucket=bucket,
        )
        self._setup(config, http_client)

    @classmethod
    def from_config(
        cls, config: ClientConfig, *, http_client: httpx.AsyncClient | None = None
    ) -> "ApexxCloud":
        """Create a client from an existing ClientConfig (e.g. ``load_config``)."""
        client = cls.__new__(cls)
        client._setup(config, http_client)
        return client

    def _setup(self, config: ClientConfig, http_client: httpx.AsyncClient | None) -> None:
        self.config = config
        self._signer = RequestSigner(config.access_key, config.secret_key)
        self._owns_http = http_client is None
        # Timeouts are left to the transport: large uploads must not be cut short.
        self._http = http_client or httpx.AsyncClient(timeout=None)
        self.files = FileOperations(self)
        self.bucket = BucketOperations(self)

    @property
    def signer(self) -> RequestSigner:
        return self._signer

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "ApexxCloud":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -- Request plumbing ------------------------------------------------------

    def base_params(self, bucket_name: str | None, region: str | None) -> list[tuple[str, Any]]:
        """Return the leading ``bucket_name`` and ``region`` query parameters."""
        return [
            ("bucket_name", resolve(bucket_name, self.config.default_bucket)),
            ("region", resolve(region, self.config.region)),
        ]

    async def request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a header-signed request and return the decoded body.

        Args:
            operation: Operation name used for logging and metrics.
            method: HTTP verb.
            path: Path including the query string; this exact string is signed.
            headers: Extra headers, merged over the auth headers.
            **kwargs: Passed through to ``httpx.AsyncClient.request``
                (``files``, ``json``, ...).

        Returns:
            The JSON-decoded body, the text body for non-JSON responses, or
            None for an empty body.

        Raises:
            ApiError: If the server answers with a non-success status.
            httpx.RequestError: Network failures, propagated unchanged.
        """
        request_headers = self._signer.auth_headers(method, path)
        if headers:
            request_headers.update(headers)
        url = f"{self.config.base_url}{path}"

        start = time.monotonic()
        try:
            response = await self._http.request(method, url, headers=request_headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            metrics.record_operation(operation, metrics.STATUS_API_ERROR)
            logger.debug(
                "%s %s failed with %d",
                method,
                path,
                exc.response.status_code,
                extra={"operation": operation, "status": exc.response.status_code},
            )
            raise ApiError.from_response(exc.response) from exc
        except httpx.RequestError:
            metrics.record_operation(operation, metrics.STATUS_TRANSPORT_ERROR)
            raise

        metrics.record_operation(operation, metrics.STATUS_SUCCESS)
        logger.debug(
            "%s %s -> %d",
            method,
            path,
            response.status_code,
            extra={
                "operation": operation,
                "method": method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
            },
        )
        return _response_data(response)

    # -- Pre-signed URLs -------------------------------------------------------

    async def generate_signed_url(
        self,
        url_type: SignedUrlType | str,
        *,
        key: str | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
        visibility: str | None = None,
        expires_in: int | None = None,
        upload_id: str | None = None,
        part_number: int | None = None,
        total_parts: int | None = None,
        mime_type: str | None = None,
    ) -> Any:
        """Generate a pre-signed URL for ``url_type``.

        No request is made, except for ``download``: that type asks the
        server for a download URL with a header-signed GET and returns the
        server response instead of a URL.

        Args:
            url_type: One of the SignedUrlType values.
            key: Object key.
            bucket_name: Bucket name, defaults to the client bucket.
            region: Region, defaults to the client region.
            visibility: "public" or "private" (upload, start-multipart).
            expires_in: URL lifetime in seconds (download, default 3600).
            upload_id: Multipart upload ID (uploadpart, completemultipart,
                cancelmultipart).
            part_number: Part number (uploadpart).
            total_parts: Total number of parts (start-multipart, uploadpart).
            mime_type: File MIME type (start-multipart).

        Returns:
            The absolute signed URL, or the server response for ``download``.

        Raises:
            UnsupportedOperationError: If ``url_type`` is unknown.
            ValidationError: If a field required by ``url_type`` is missing.
        """
        url_type = parse_type(url_type)
        operation = OPERATIONS[url_type]
        options = SignedUrlOptions(
            key=key,
            bucket_name=bucket_name,
            region=region,
            visibility=visibility,
            expires_in=expires_in,
            upload_id=upload_id,
            part_number=part_number,
            total_parts=total_parts,
            mime_type=mime_type,
        )
        operation.validate(options)

        params = self.base_params(bucket_name, region)
        params.append(("key", key))
        params.extend(operation.extra_params(options))
        full_path = f"{operation.build_path(options)}?{encode_query(params)}"

        if url_type is SignedUrlType.DOWNLOAD:
            return await self.request("download_url", operation.method, full_path)

        auth = self._signer.auth_query(operation.method, full_path, iso_timestamp())
        metrics.record_signed_url(url_type.value)
        return f"{self.config.base_url}{full_path}&{encode_query(auth)}"


class FileOperations:
    """File, cache and multipart operations bound to one client."""

    def __init__(self, client: ApexxCloud) -> None:
        self._client = client

    async def upload(
        self,
        file_data: FileData | None,
        *,
        key: str | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
        visibility: str | None = None,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> Any:
        """Upload a file in a single request.

        Args:
            file_data: Bytes or a readable binary stream.
            key: Object key in the bucket.
            bucket_name: Target bucket, defaults to the client bucket.
            region: Target region, defaults to the client region.
            visibility: "public" (default) or "private".
            filename: Form filename, defaults to ``key``.
            content_type: Part MIME type, defaults to application/octet-stream.

        Returns:
            The upload response, e.g. ``{"url": ...}``.

        Raises:
            ValidationError: If ``file_data`` or ``key`` is missing.
        """
        operation = "upload operation"
        require_payload(file_data, "file_data", operation)
        require(key, "key", operation)

        params = self._client.base_params(bucket_name, region)
        params.append(("visibility", resolve(visibility, default=DEFAULT_VISIBILITY)))
        params.append(("key", key))

        path = f"{FILES_PATH}/upload?{encode_query(params)}"
        return await self._client.request(
            "upload",
            "PUT",
            path,
            files=_form_file(file_data, filename or key, content_type),
        )

    async def delete(
        self, key: str | None, *, bucket_name: str | None = None, region: str | None = None
    ) -> Any:
        """Delete an object."""
        require(key, "key", "delete operation")
        params = self._client.base_params(bucket_name, region)
        params.append(("key", key))
        return await self._client.request(
            "delete", "DELETE", f"{FILES_PATH}/delete?{encode_query(params)}"
        )

    async def purge(
        self, key: str | None, *, bucket_name: str | None = None, region: str | None = None
    ) -> Any:
        """Invalidate the CDN cache for an object."""
        require(key, "key", "purge operation")
        params = self._client.base_params(bucket_name, region)
        params.append(("key", key))
        return await self._client.request(
            "purge", "POST", f"{FILES_PATH}/purge?{encode_query(params)}"
        )

    async def start_multipart_upload(
        self,
        key: str | None,
        *,
        total_parts: int | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
        mime_type: str | None = None,
        visibility: str | None = None,
    ) -> Any:
        """Initiate a multipart upload.

        Returns:
            The server response, e.g. ``{"uploadId": ...}``.
        """
        operation = "multipart upload"
        require(key, "key", operation)
        require(total_parts, "total_parts", operation)

        params = self._client.base_params(bucket_name, region)
        params.extend(
            [
                ("key", key),
                ("mimeType", resolve(mime_type, default=DEFAULT_CONTENT_TYPE)),
                ("visibility", resolve(visibility, default=DEFAULT_VISIBILITY)),
                ("totalParts", total_parts),
            ]
        )
        return await self._client.request(
            "start_multipart", "POST", f"{FILES_PATH}/multipart/start?{encode_query(params)}"
        )

    async def upload_part(
        self,
        upload_id: str | None,
        part_number: int | None,
        file_part: FileData | None,
        *,
        key: str | None = None,
        total_parts: int | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> Any:
        """Upload one part of a multipart upload.

        Sequencing parts is the caller's job; each call sends one part.

        Returns:
            The server response, e.g. ``{"ETag": ..., "PartNumber": ...}``.
        """
        operation = "upload part"
        require(upload_id, "upload_id", operation)
        require(part_number, "part_number", operation)
        require(key, "key", operation)
        require(total_parts, "total_parts", operation)
        require_payload(file_part, "file_part", operation)

        params = self._client.base_params(bucket_name, region)
        params.extend(
            [
                ("partNumber", part_number),
                ("key", key),
                ("totalParts", total_parts),
            ]
        )
        return await self._client.request(
            "upload_part",
            "POST",
            f"{FILES_PATH}/multipart/{upload_id}?{encode_query(params)}",
            files=_form_file(file_part, filename or key, content_type),
        )

    async def complete_multipart_upload(
        self,
        upload_id: str | None,
        parts: Sequence[Part | Mapping[str, Any]] | None,
        *,
        key: str | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
    ) -> Any:
        """Assemble the uploaded parts into the final object.

        Args:
            upload_id: Multipart upload ID.
            parts: Part objects or ``{"ETag", "PartNumber"}`` mappings, in
                the order the server should assemble them.
            key: Object key.

        Returns:
            The server response, e.g. ``{"Location", "Bucket", "Key", "ETag"}``.
        """
        operation = "complete multipart upload"
        require(upload_id, "upload_id", operation)
        require_parts(parts, operation)
        require(key, "key", operation)

        params = self._client.base_params(bucket_name, region)
        params.append(("key", key))
        return await self._client.request(
            "complete_multipart",
            "POST",
            f"{FILES_PATH}/multipart/{upload_id}/complete?{encode_query(params)}",
            json={"parts": serialize_parts(parts, operation)},
        )

    async def cancel_multipart_upload(
        self,
        upload_id: str | None,
        *,
        key: str | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
    ) -> Any:
        """Abort a multipart upload and discard its parts."""
        operation = "cancel multipart upload"
        require(upload_id, "upload_id", operation)
        require(key, "key", operation)

        params = self._client.base_params(bucket_name, region)
        params.append(("key", key))
        return await self._client.request(
            "cancel_multipart",
            "DELETE",
            f"{FILES_PATH}/multipart/{upload_id}?{encode_query(params)}",
        )

    async def get_signed_url(
        self, url_type: SignedUrlType | str, key: str | None = None, **options: Any
    ) -> Any:
        """Shortcut for ``ApexxCloud.generate_signed_url``."""
        return await self._client.generate_signed_url(url_type, key=key, **options)


class BucketOperations:
    """Bucket operations bound to one client."""

    def __init__(self, client: ApexxCloud) -> None:
        self._client = client

    async def list_contents(
        self,
        *,
        bucket_name: str | None = None,
        region: str | None = None,
        prefix: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> Any:
        """List objects in a bucket, one page at a time.

        Args:
            bucket_name: Bucket, defaults to the client bucket.
            region: Region, defaults to the client region.
            prefix: Only list keys starting with this prefix.
            page: 1-based page number (default 1).
            limit: Page size (default 20).

        Returns:
            ``{"contents": [...], "page", "totalPages", "totalItems"}``.
        """
        params = self._client.base_params(bucket_name, region)
        params.extend(
            [
                ("prefix", resolve(prefix, default=DEFAULT_PREFIX)),
                ("page", or_default(page, DEFAULT_PAGE)),
                ("limit", or_default(limit, DEFAULT_LIMIT)),
            ]
        )
        return await self._client.request(
            "list_contents", "GET", f"{FILES_PATH}/contents?{encode_query(params)}"
        )


def _form_file(
    data: FileData, filename: str, content_type: str | None
) -> dict[str, tuple[str, Any, str]]:
    """Build the httpx ``files`` argument for the ``file`` form field."""
    if isinstance(data, (bytearray, memoryview)):
        data = bytes(data)
    return {"file": (filename, data, content_type or DEFAULT_CONTENT_TYPE)}


def _response_data(response: httpx.Response) -> Any:
    if not response.content:
        return None
    if "json" in response.headers.get("content-type", ""):
        # A body labelled JSON that fails to parse is returned as text.
        try:
            return response.json()
        except ValueError:
            pass
    return response.text
