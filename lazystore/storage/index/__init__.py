from .page_index import PageIndex

__all__ = ["PageIndex"]
