"""Template and blob store collaborators for PDF Generator."""

from .base import BlobStore, TemplateStore, UploadingBlobStore
from .filesystem import FileBlobStore, FileTemplateStore
from .memory import InMemoryBlobStore, InMemoryTemplateStore

__all__ = [
    "TemplateStore",
    "BlobStore",
    "UploadingBlobStore",
    "InMemoryTemplateStore",
    "InMemoryBlobStore",
    "FileTemplateStore",
    "FileBlobStore",
]
