from .distribution_filter import count_mean_crossings, is_evenly_distributed

__all__ = ["count_mean_crossings", "is_evenly_distributed"]
