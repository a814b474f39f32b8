"""
Search orchestration for intelx-mcp.

Binds each search family to the generic poll engine, runs the family's
normalization, and pseudonymizes every outbound payload through the
identifier registry. Single-shot operations (file preview/view/read/tree,
selectors, capabilities) recover raw identifiers from the registry before
calling upstream.
"""

from __future__ import annotations

import base64
from typing import Any
from uuid import UUID

from intelx_mcp.mcp.errors import TransportError, UnknownIdentifierError
from intelx_mcp.search.apis.identity import IdentityClient
from intelx_mcp.search.apis.intelx import IntelXClient
from intelx_mcp.search.identifiers import (
    IdentifierField,
    IdentifierRegistry,
    get_identifier_registry,
)
from intelx_mcp.search.normalizer import (
    DEFAULT_LINE_MAX_CHARS,
    normalize_account_records,
    normalize_identity_records,
    normalize_phonebook_results,
    normalize_search_records,
)
from intelx_mcp.search.poll_engine import JobPollEngine
from intelx_mcp.utils.config import Settings, get_settings
from intelx_mcp.utils.logging import LogContext, get_logger
from intelx_mcp.utils.schemas import (
    ExportAccountsRequest,
    FilePreviewRequest,
    FileReadRequest,
    FileTreeViewRequest,
    FileViewRequest,
    GetSelectorsRequest,
    IdentitySearchRequest,
    IntelligentSearchRequest,
    PhonebookSearchRequest,
)

logger = get_logger(__name__)


class SearchOrchestrator:
    """One entry point per search family and single-shot operation.

    Every returned payload has passed through IdentifierRegistry.normalize.
    """

    def __init__(
        self,
        intelx_client: IntelXClient,
        identity_client: IdentityClient,
        registry: IdentifierRegistry,
        engine: JobPollEngine,
        *,
        line_max_chars: int = DEFAULT_LINE_MAX_CHARS,
    ) -> None:
        self.intelx = intelx_client
        self.identity = identity_client
        self.registry = registry
        self.engine = engine
        self.line_max_chars = line_max_chars

    def _resolve(self, field: IdentifierField, value: int) -> str:
        """Recover a raw identifier, or fail before any upstream call."""
        raw = self.registry.resolve(field, value)
        if raw is None:
            raise UnknownIdentifierError(field.value, value)
        return raw

    # ---------------------------------------------------------------------
    # Search families
    # ---------------------------------------------------------------------

    async def submit_search(self, request: IntelligentSearchRequest) -> str:
        """Submit an intelligent search and return its raw handle."""
        return await self.intelx.submit_search(request)

    async def intelligent_search(self, request: IntelligentSearchRequest) -> list[dict[str, Any]]:
        """Run an intelligent search to completion.

        Returns:
            Pseudonymized search records.
        """
        with LogContext(search_family="search"):
            session = await self.engine.run(
                lambda: self.submit_search(request),
                self.intelx.poll_search,
                self.intelx.terminate,
                request.maxresults,
                normalize=normalize_search_records,
            )
        return self.registry.normalize(session.accumulated)

    async def phonebook_search(self, request: PhonebookSearchRequest) -> list[dict[str, Any]]:
        """Run a phonebook search to completion.

        Returns:
            Pseudonymized {type, value} selectors across all rounds.
        """
        with LogContext(search_family="phonebook"):
            session = await self.engine.run(
                lambda: self.intelx.submit_phonebook(request),
                self.intelx.poll_phonebook,
                self.intelx.terminate,
                request.maxresults,
                keep_rounds=True,
            )
        return self.registry.normalize(normalize_phonebook_results(session.rounds))

    async def identity_search(self, request: IdentitySearchRequest) -> list[dict[str, Any]]:
        """Run an identity search to completion.

        Records are merged by storage identifier after the whole session,
        since one item's lines can arrive across several rounds.

        Returns:
            Pseudonymized merged identity records.
        """
        with LogContext(search_family="identity"):
            session = await self.engine.run(
                lambda: self.identity.submit_identity(request),
                self.identity.poll,
                self.identity.terminate,
                request.maxresults,
            )
        merged = normalize_identity_records(session.accumulated, self.line_max_chars)
        return self.registry.normalize(merged)

    async def export_accounts(self, request: ExportAccountsRequest) -> list[dict[str, Any]]:
        """Run a leaked account export to completion.

        Returns:
            Pseudonymized account records.
        """
        with LogContext(search_family="accounts"):
            session = await self.engine.run(
                lambda: self.identity.submit_export(request),
                self.identity.poll,
                self.identity.terminate,
                request.maxresults,
                keep_rounds=True,
            )
        return self.registry.normalize(normalize_account_records(session.rounds))

    async def terminate_search(self, search_id: UUID | str) -> bool:
        """Terminate a search by handle.

        Returns:
            True if upstream accepted the request, False on an error status.
        """
        try:
            await self.intelx.terminate(str(search_id))
        except TransportError as e:
            if e.status == 0:
                raise
            logger.warning("Terminate rejected", handle=str(search_id), status=e.status)
            return False
        return True

    # ---------------------------------------------------------------------
    # Single-shot operations
    # ---------------------------------------------------------------------

    async def file_preview(self, request: FilePreviewRequest) -> Any:
        storage_id = self._resolve(IdentifierField.STORAGE_ID, request.storage_id)
        preview = await self.intelx.file_preview(
            storage_id,
            request.bucket,
            request.media_type,
            request.content_type,
            request.lines,
            request.format_value,
        )
        return self.registry.normalize(preview)

    async def file_view(self, request: FileViewRequest) -> Any:
        storage_id = self._resolve(IdentifierField.STORAGE_ID, request.storage_id)
        content = await self.intelx.file_view(
            storage_id,
            request.bucket,
            request.media_type,
            request.content_type,
        )
        return self.registry.normalize(content)

    async def file_read(self, request: FileReadRequest) -> dict[str, Any]:
        """Download an item.

        Returns:
            {"size": byte count, "base64": encoded contents}
        """
        system_id = self._resolve(IdentifierField.SYSTEM_ID, request.system_id)
        data = await self.intelx.file_read(system_id, request.bucket)
        return {
            "size": len(data),
            "base64": base64.b64encode(data).decode("ascii"),
        }

    async def file_tree_view(self, request: FileTreeViewRequest) -> Any:
        """Get the item tree for a container or archive item.

        Every given identifier is resolved in its own field. An index file is
        sent upstream as a storage ID; upstream prefers storage IDs over
        system IDs, and storage_id wins over index_file.
        """
        storage_id = None
        system_id = None
        if request.storage_id is not None:
            storage_id = self._resolve(IdentifierField.STORAGE_ID, request.storage_id)
        if request.index_file is not None:
            index_file = self._resolve(IdentifierField.INDEX_FILE, request.index_file)
            if storage_id is None:
                storage_id = index_file
        if request.system_id is not None:
            system_id = self._resolve(IdentifierField.SYSTEM_ID, request.system_id)

        tree = await self.intelx.file_tree_view(request.bucket, storage_id, system_id)
        return self.registry.normalize(tree)

    async def get_selectors(self, request: GetSelectorsRequest) -> list[dict[str, Any]]:
        system_id = self._resolve(IdentifierField.SYSTEM_ID, request.system_id)
        selectors = await self.intelx.get_selectors(system_id)
        return self.registry.normalize(selectors)

    async def get_capabilities(self) -> dict[str, Any]:
        return self.registry.normalize(await self.intelx.get_capabilities())

    async def close(self) -> None:
        """Close both upstream clients."""
        await self.intelx.close()
        await self.identity.close()


def create_orchestrator(settings: Settings | None = None) -> SearchOrchestrator:
    """Build an orchestrator wired to the process-wide registry and rate gate.

    Args:
        settings: Settings to use (if None, loaded with get_settings()).

    Returns:
        SearchOrchestrator instance.
    """
    if settings is None:
        settings = get_settings()

    api_key = settings.api_key or ""
    client_kwargs = {
        "user_agent": settings.api.user_agent,
        "timeout": settings.api.timeout_seconds,
    }

    return SearchOrchestrator(
        IntelXClient(api_key, settings.api.main_root, **client_kwargs),
        IdentityClient(api_key, settings.api.identity_root, **client_kwargs),
        get_identifier_registry(),
        JobPollEngine(
            poll_interval_seconds=settings.polling.interval_seconds,
            handle_min_length=settings.polling.handle_min_length,
        ),
        line_max_chars=settings.postprocess.line_max_chars,
    )


# Global instance (created on first tool call)
_orchestrator: SearchOrchestrator | None = None


def get_orchestrator() -> SearchOrchestrator:
    """Get or create the global orchestrator.

    Returns:
        Global SearchOrchestrator instance.
    """
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = create_orchestrator()
    return _orchestrator


async def close_orchestrator() -> None:
    """Close and drop the global orchestrator."""
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.close()
        _orchestrator = None


def reset_orchestrator() -> None:
    """Drop the global orchestrator without closing it (for testing only)."""
    global _orchestrator
    _orchestrator = None
