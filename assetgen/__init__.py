"""
Image asset pipeline for the commission gallery

Two stages per source file:
    1. Normalize: promote an uploaded PNG to a durable JPEG master
    2. Derive: generate a WEBP delivery copy when the master is newer

Stages fan out over a bounded worker pool and join into one BatchReport.
"""

__version__ = "1.0.0"

from .source_asset import SourceAsset
from .scanner import Scanner
from .conversion_stats import BatchReport, ConversionOutcome
from .image_converter import ImageConverter
from .conversion_progress import ConversionProgress
from .pipeline import ImagePipeline, run_pipeline
from .derivative_index import DerivativeIndex, regenerate_index
from .job import PipelineJob, create_job

__all__ = [
    "SourceAsset",
    "Scanner",
    "BatchReport",
    "ConversionOutcome",
    "ImageConverter",
    "ConversionProgress",
    "ImagePipeline",
    "run_pipeline",
    "DerivativeIndex",
    "regenerate_index",
    "PipelineJob",
    "create_job",
]
