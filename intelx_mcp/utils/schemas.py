"""
Pydantic schemas for validated tool requests.

Tool arguments are validated into these models before they reach the
orchestrator. Numeric identifiers are the pseudonymized integers handed out
by earlier results; digit strings are coerced to int.
"""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

PHONEBOOK_TARGETS: dict[str, int] = {
    "all": 0,
    "domains": 1,
    "emails": 2,
    "urls": 3,
}


class IntelligentSearchRequest(BaseModel):
    """intelx_intelligent_search request."""

    term: str = Field(..., min_length=1, description="Strong selector to search")
    maxresults: int = Field(100, gt=0, description="Maximum number of records")
    buckets: list[str] = Field(default_factory=list, description="Buckets (empty for all)")
    timeout: int = Field(5, gt=0, description="Upstream search timeout in seconds")
    datefrom: str = Field("", description="Start date 'YYYY-MM-DD HH:MM:SS'")
    dateto: str = Field("", description="End date 'YYYY-MM-DD HH:MM:SS'")
    sort: int = Field(4, ge=0, le=4, description="0=none, 1/2=score asc/desc, 3/4=date asc/desc")
    media: int = Field(0, ge=0, description="Media type filter (0=all)")
    terminate: list[str] = Field(default_factory=list, description="Search IDs to terminate first")


class PhonebookSearchRequest(BaseModel):
    """intelx_phonebook_search request."""

    term: str = Field(..., min_length=1, description="Selector to search")
    maxresults: int = Field(100, gt=0, description="Maximum number of selectors")
    buckets: list[str] = Field(default_factory=list, description="Buckets (empty for all)")
    timeout: int = Field(5, gt=0, description="Upstream search timeout in seconds")
    datefrom: str = Field("", description="Start date")
    dateto: str = Field("", description="End date")
    sort: int = Field(4, ge=0, le=4, description="Sort order")
    media: int = Field(0, ge=0, description="Media type filter")
    terminate: list[str] = Field(default_factory=list, description="Search IDs to terminate first")
    target: Literal["all", "domains", "emails", "urls"] = Field("all", description="Selector type filter")

    @property
    def target_value(self) -> int:
        """Upstream numeric target."""
        return PHONEBOOK_TARGETS[self.target]


class IdentitySearchRequest(BaseModel):
    """intelx_identity_search request."""

    selector: str = Field(..., min_length=1, description="Email or domain")
    maxresults: int = Field(100, gt=0, description="Maximum number of records")
    buckets: str = Field("", description="Comma-separated bucket filter")
    datefrom: str = Field("", description="Start date")
    dateto: str = Field("", description="End date")
    analyze: bool = Field(False, description="Include breach analysis")
    skip_invalid: bool = Field(False, description="Skip invalid results")
    terminate: list[str] = Field(default_factory=list, description="Search IDs to terminate first")


class ExportAccountsRequest(BaseModel):
    """intelx_export_accounts request."""

    selector: str = Field(..., min_length=1, description="Email or domain")
    maxresults: int = Field(100, gt=0, description="Maximum number of accounts")
    buckets: str = Field("", description="Comma-separated bucket filter")
    datefrom: str = Field("", description="Start date")
    dateto: str = Field("", description="End date")
    terminate: list[str] = Field(default_factory=list, description="Search IDs to terminate first")


class FilePreviewRequest(BaseModel):
    """intelx_file_preview request."""

    storage_id: int = Field(..., ge=1, description="'storageid' from a search result")
    bucket: str = Field(..., min_length=1, description="'bucket' from a search result")
    media_type: int = Field(..., ge=0, description="'media' from a search result")
    content_type: int = Field(..., ge=0, description="'type' from a search result")
    lines: int = Field(8, gt=0, description="Number of lines to preview")
    format: Literal["text", "picture"] = Field("text", description="Preview format")

    @property
    def format_value(self) -> int:
        """Upstream numeric preview format."""
        return 1 if self.format == "picture" else 0


class FileViewRequest(BaseModel):
    """intelx_file_view request."""

    storage_id: int = Field(..., ge=1, description="'storageid' from a search result")
    bucket: str = Field(..., min_length=1, description="'bucket' from a search result")
    media_type: int = Field(..., ge=0, description="'media' from a search result")
    content_type: int = Field(..., ge=0, description="'type' from a search result")


class FileReadRequest(BaseModel):
    """intelx_file_read request."""

    system_id: int = Field(..., ge=1, description="'systemid' from a search result")
    bucket: str = Field(..., min_length=1, description="'bucket' from a search result")
    filename: str | None = Field(None, description="Optional file name (informational)")


class FileTreeViewRequest(BaseModel):
    """intelx_file_treeview request."""

    bucket: str = Field(..., min_length=1, description="'bucket' from a search result")
    storage_id: int | None = Field(None, ge=1, description="'storageid' from a search result")
    index_file: int | None = Field(None, ge=1, description="'indexfile' from a search result")
    system_id: int | None = Field(None, ge=1, description="'systemid' from a search result")

    @model_validator(mode="after")
    def _require_identifier(self) -> "FileTreeViewRequest":
        if self.storage_id is None and self.index_file is None and self.system_id is None:
            raise ValueError("One of storage_id, index_file or system_id must be provided")
        return self


class GetSelectorsRequest(BaseModel):
    """intelx_get_selectors request."""

    system_id: int = Field(..., ge=1, description="'systemid' from a search result")


class TerminateSearchRequest(BaseModel):
    """intelx_terminate_search request."""

    search_id: UUID = Field(..., description="Search ID (UUID)")
