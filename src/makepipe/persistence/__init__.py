from .pipeline_store import PipelineArtifactMeta, PipelineStore

__all__ = ["PipelineArtifactMeta", "PipelineStore"]
