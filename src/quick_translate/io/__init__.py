"""I/O layer - Persistence of the wordbook and access to the offline corpus."""

from .corpus_index import OfflineCorpusIndex, read_corpus_file
from .result_cache import ResultCache

__all__ = ["ResultCache", "OfflineCorpusIndex", "read_corpus_file"]
