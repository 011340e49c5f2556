from dateplanner.observability.generation_metrics import GenerationMetrics

__all__ = ["GenerationMetrics"]
