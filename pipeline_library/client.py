"""
Pipeline Library API Client.

This module provides an async Python client for the pipeline library HTTP API,
including export and import of pipelines together with their rule definitions.
"""

from typing import Any

import httpx

from pipeline_library.envelopes import (
    PipelineConfigurationJson,
    PipelineExportJson,
    PipelineInfoJson,
    PipelineRevInfoJson,
    RuleDefinitionsJson,
)
from pipeline_library.models import HEAD_REV
from pipeline_library.utils.logger import logger

API_PREFIX = "/v1/pipeline-library"


class PipelineLibraryAPIError(Exception):
    """Base exception for Pipeline Library API errors."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None) -> None:
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class PipelineLibraryAuthError(PipelineLibraryAPIError):
    """Authentication and authorization errors."""

    pass


class PipelineLibraryClient:
    """Client for interacting with the Pipeline Library API.

    Example:
        ```python
        async with PipelineLibraryClient("http://localhost:8000", token=token) as client:
            bundle = await client.export_pipeline("orders")
            await client.import_pipeline("orders-copy", bundle)
        ```
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        log_requests: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the server (e.g., "http://localhost:8000")
            token: Bearer token sent with every request
            log_requests: Enable request/response logging (default: False)
            transport: Custom httpx transport, e.g. an ASGI transport in tests
        """
        self.base_url = base_url.rstrip("/")
        self.log_requests = log_requests

        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = httpx.AsyncClient(
            base_url=self.base_url, headers=headers, transport=transport
        )

    async def __aenter__(self) -> "PipelineLibraryClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """Make HTTP request to API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Path below the pipeline library collection (e.g., "/orders")
            **kwargs: Additional arguments passed to httpx request

        Returns:
            HTTP response

        Raises:
            PipelineLibraryAPIError: On API errors
            PipelineLibraryAuthError: On authentication or authorization errors
        """
        url = f"{API_PREFIX}{endpoint}"
        if self.log_requests:
            logger.debug(f"API Request: {method} {url}")

        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error during request: {e}")
            raise PipelineLibraryAPIError(f"HTTP error: {e!s}") from e

        if self.log_requests:
            logger.debug(f"API Response: {response.status_code}")

        if response.status_code >= 400:
            try:
                body = response.json()
                detail = body.get("detail", body) if isinstance(body, dict) else body
            except ValueError:
                detail = response.text

            error_cls = (
                PipelineLibraryAuthError
                if response.status_code in (401, 403)
                else PipelineLibraryAPIError
            )
            raise error_cls(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                detail=detail,
            )

        return response

    async def list_pipelines(self) -> list[PipelineInfoJson]:
        response = await self._request("GET", "")
        return [PipelineInfoJson.model_validate(item) for item in response.json()]

    async def get_pipeline(self, name: str, rev: str = HEAD_REV) -> PipelineConfigurationJson:
        response = await self._request("GET", f"/{name}", params={"rev": rev})
        return PipelineConfigurationJson.model_validate(response.json())

    async def get_info(self, name: str) -> PipelineInfoJson:
        response = await self._request("GET", f"/{name}", params={"get": "info"})
        return PipelineInfoJson.model_validate(response.json())

    async def get_history(self, name: str) -> list[PipelineRevInfoJson]:
        response = await self._request("GET", f"/{name}", params={"get": "history"})
        return [PipelineRevInfoJson.model_validate(item) for item in response.json()]

    async def create_pipeline(self, name: str, description: str = "") -> PipelineConfigurationJson:
        response = await self._request("PUT", f"/{name}", params={"description": description})
        return PipelineConfigurationJson.model_validate(response.json())

    async def save_pipeline(
        self,
        name: str,
        pipeline: PipelineConfigurationJson,
        tag: str = HEAD_REV,
        tag_description: str | None = None,
    ) -> PipelineConfigurationJson:
        """Save a new revision of a pipeline.

        The envelope must carry the uuid of the revision it was based on.
        """
        params = {"tag": tag}
        if tag_description is not None:
            params["tagDescription"] = tag_description
        response = await self._request(
            "POST",
            f"/{name}",
            params=params,
            json=pipeline.model_dump(mode="json", by_alias=True, exclude={"info", "validation"}),
        )
        return PipelineConfigurationJson.model_validate(response.json())

    async def delete_pipeline(self, name: str) -> None:
        await self._request("DELETE", f"/{name}")

    async def get_rules(self, name: str, rev: str = HEAD_REV) -> RuleDefinitionsJson | None:
        response = await self._request("GET", f"/{name}/rules", params={"rev": rev})
        data = response.json()
        return RuleDefinitionsJson.model_validate(data) if data is not None else None

    async def save_rules(
        self, name: str, rules: RuleDefinitionsJson, rev: str = HEAD_REV
    ) -> RuleDefinitionsJson:
        response = await self._request(
            "POST", f"/{name}/rules", params={"rev": rev}, json=rules.to_json()
        )
        return RuleDefinitionsJson.model_validate(response.json())

    async def export_pipeline(self, name: str, rev: str = HEAD_REV) -> PipelineExportJson:
        """Download a pipeline revision bundled with its rule definitions."""
        response = await self._request(
            "GET", f"/{name}", params={"rev": rev, "attachment": "true"}
        )
        return PipelineExportJson.model_validate(response.json())

    async def import_pipeline(
        self, name: str, bundle: PipelineExportJson
    ) -> PipelineConfigurationJson:
        """Recreate an exported pipeline under ``name``.

        Creates the pipeline, saves the exported configuration on top of it and
        replaces the seeded rules with the exported ones. The uuids assigned by
        the server at each step are carried into the next write.

        Args:
            name: Name of the pipeline to create
            bundle: Export envelope as returned by :meth:`export_pipeline`

        Returns:
            The saved pipeline configuration

        Raises:
            PipelineLibraryAPIError: If the pipeline exists or any step fails
        """
        exported = PipelineConfigurationJson.model_validate(bundle.pipeline_config)
        created = await self.create_pipeline(name, exported.description)

        pipeline = exported.model_copy(update={"uuid": created.uuid})
        saved = await self.save_pipeline(name, pipeline)

        if bundle.pipeline_rules is not None:
            current = await self.get_rules(name)
            rules = bundle.pipeline_rules.model_copy(
                update={"uuid": current.uuid if current else None, "rule_issues": []}
            )
            await self.save_rules(name, rules)

        logger.info(f"Imported pipeline '{name}'")
        return saved
