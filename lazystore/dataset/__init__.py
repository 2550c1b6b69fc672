from .dataset import Dataset
from .fetch_result import FetchResult

__all__ = ["Dataset", "FetchResult"]
