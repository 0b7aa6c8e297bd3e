"""Parser package exports."""

from .html_parser import HTMLParser, HTMLParserConfig
from .tokenizer import HTMLTokenizer, tokenize
from .tree_builder import TreeBuilder

__all__ = [
    "HTMLParser",
    "HTMLParserConfig",
    "HTMLTokenizer",
    "TreeBuilder",
    "tokenize",
]
