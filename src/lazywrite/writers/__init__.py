from lazywrite.writers.base import BaseWriter, Content
from lazywrite.writers.file import FileWriter

__all__ = [
    "BaseWriter",
    "Content",
    "FileWriter",
]
