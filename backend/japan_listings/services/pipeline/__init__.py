from japan_listings.services.pipeline.errors import PipelineError, PipelineErrorType
from japan_listings.services.pipeline.logger import PipelineLogger
from japan_listings.services.pipeline.orchestrator import DataProcessingPipeline

__all__ = [
    "DataProcessingPipeline",
    "PipelineError",
    "PipelineErrorType",
    "PipelineLogger",
]
