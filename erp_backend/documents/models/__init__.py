# documents/models/__init__.py

from documents.models.source_document import SourceDocument

__all__ = ["SourceDocument"]
