"""Output format registry."""

from __future__ import annotations

from dataclasses import dataclass

from pixelstage.errors import InvalidParameter

DEFAULT_FORMAT = "jpeg"


@dataclass(frozen=True)
class OutputFormat:
    """A format clients may request, keyed by the name they send."""

    name: str
    pillow_format: str
    supports_alpha: bool

    @property
    def extension(self) -> str:
        return self.name

    @property
    def media_type(self) -> str:
        return f"image/{self.name}"


FORMAT_REGISTRY: dict[str, OutputFormat] = {
    "jpeg": OutputFormat(name="jpeg", pillow_format="JPEG", supports_alpha=False),
    "jpg": OutputFormat(name="jpg", pillow_format="JPEG", supports_alpha=False),
    "png": OutputFormat(name="png", pillow_format="PNG", supports_alpha=True),
    "webp": OutputFormat(name="webp", pillow_format="WEBP", supports_alpha=True),
    "tiff": OutputFormat(name="tiff", pillow_format="TIFF", supports_alpha=True),
    "gif": OutputFormat(name="gif", pillow_format="GIF", supports_alpha=True),
}


def lookup_format(name: str | None) -> OutputFormat:
    """Return the registered format for ``name``, or the default when absent.

    Raises:
        InvalidParameter: If ``name`` is not a registered format.
    """
    if name is None:
        return FORMAT_REGISTRY[DEFAULT_FORMAT]
    try:
        return FORMAT_REGISTRY[name.strip().lower()]
    except KeyError:
        raise InvalidParameter(f"Unsupported output format: {name!r}") from None
