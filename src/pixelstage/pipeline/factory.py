"""Builds the staging store and the three stages that share it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pixelstage.imaging.processor import PillowProcessor
from pixelstage.pipeline.retrieval import RetrievalStage
from pixelstage.pipeline.transform import TransformStage
from pixelstage.pipeline.upload import UploadStage
from pixelstage.staging.identity import IdentityMinter
from pixelstage.staging.store import StagingStore

if TYPE_CHECKING:
    from pixelstage.config import Settings
    from pixelstage.imaging.processor import ImageProcessor


@dataclass(frozen=True)
class Pipeline:
    store: StagingStore
    upload: UploadStage
    transform: TransformStage
    retrieval: RetrievalStage


def build_pipeline(settings: Settings, processor: ImageProcessor | None = None) -> Pipeline:
    """Wire one store, one minter, and the stages around them."""
    store = StagingStore(settings.staging_dir)
    minter = IdentityMinter()
    return Pipeline(
        store=store,
        upload=UploadStage(store, minter, max_bytes=settings.max_file_size),
        transform=TransformStage(store, minter, processor or PillowProcessor(settings)),
        retrieval=RetrievalStage(store),
    )
