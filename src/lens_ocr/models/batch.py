"""Batch item and source listing models."""

from typing import Any, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from lens_ocr.errors import FetchError

PDF_MIME_TYPE = "application/pdf"


def normalize_media_type(mime_type: str) -> str:
    """Lower-case a MIME type and drop any parameters."""
    return mime_type.split(";", 1)[0].strip().lower()


def is_supported_media_type(mime_type: Optional[str]) -> bool:
    """
    Check whether a MIME type can be sent to the OCR service.

    Args:
        mime_type: MIME type string, possibly with parameters.

    Returns:
        True for image/* and application/pdf.
    """
    if not mime_type:
        return False
    normalized = normalize_media_type(mime_type)
    return normalized.startswith("image/") or normalized == PDF_MIME_TYPE


class ByteResolver(Protocol):
    """Anything able to turn a deferred reference into bytes."""

    async def fetch_bytes(self, ref: str) -> bytes: ...


class InlineSource(BaseModel):
    """Document bytes held in memory."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    data: bytes = Field(..., exclude=True, repr=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size_bytes(self) -> int:
        return len(self.data)


class DeferredSource(BaseModel):
    """Reference resolved to bytes only when the item is processed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["deferred"] = "deferred"
    ref: str
    resolver: Any = Field(..., exclude=True, repr=False)


SourceRef = Union[InlineSource, DeferredSource]


class BatchItem(BaseModel):
    """One unit of OCR work."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable item identifier")
    name: str = Field(..., description="Display name, used in separator headers")
    source: SourceRef = Field(..., discriminator="kind")
    media_type: str = Field(..., description="MIME type of the document")

    @field_validator("media_type")
    @classmethod
    def _check_media_type(cls, value: str) -> str:
        if not is_supported_media_type(value):
            raise ValueError(f"Unsupported media type for OCR: {value}")
        return normalize_media_type(value)

    @classmethod
    def inline(cls, item_id: str, name: str, data: bytes, media_type: str) -> "BatchItem":
        """Build an item whose bytes are already in memory."""
        return cls(
            id=item_id,
            name=name,
            source=InlineSource(data=data),
            media_type=media_type,
        )

    @classmethod
    def deferred(
        cls, item_id: str, name: str, ref: str, resolver: ByteResolver, media_type: str
    ) -> "BatchItem":
        """Build an item fetched lazily through a resolver."""
        return cls(
            id=item_id,
            name=name,
            source=DeferredSource(ref=ref, resolver=resolver),
            media_type=media_type,
        )

    @property
    def is_deferred(self) -> bool:
        return isinstance(self.source, DeferredSource)

    async def resolve(self) -> bytes:
        """
        Resolve the item to its document bytes.

        Returns:
            Raw document bytes.

        Raises:
            FetchError: If a deferred fetch fails.
        """
        if isinstance(self.source, InlineSource):
            return self.source.data

        try:
            return await self.source.resolver.fetch_bytes(self.source.ref)
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(
                f"Failed to fetch {self.name}: {str(e)}", original_error=e
            ) from e


class SourceListing(BaseModel):
    """Items produced by one source adapter call, plus filtering counts."""

    items: list[BatchItem] = Field(default_factory=list)
    selected_count: int = Field(0, description="Candidates seen before filtering")
    skipped_by_type: int = Field(0, description="Candidates with unsupported types")
    skipped_by_prefix: int = Field(
        0, description="Candidates named like the tool's own output"
    )
    notes: list[str] = Field(
        default_factory=list, description="Lifecycle lines for the workflow log"
    )

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def nothing_selected(self) -> bool:
        return self.selected_count == 0
