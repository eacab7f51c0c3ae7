"""Word lookup: saved words, dictionary cache, dictionary/translation APIs, AI analysis."""
from echolisten.dictionary.service import LOOKUP_FAILED, WordDefinition, clean_word, lookup

__all__ = ["LOOKUP_FAILED", "WordDefinition", "clean_word", "lookup"]
