from .task import HashComputationTask

__all__ = ["HashComputationTask"]
