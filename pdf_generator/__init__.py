"""
PDF Generator - Fill PDF templates with structured data.

This library renders typed fields (text, numbers, dates, checkboxes, images,
QR codes, tables and signatures) onto a base PDF or onto blank pages
described by a template, and returns the filled document together with
per-field diagnostics.

Quick Start:
    >>> from pdf_generator import PDFGenerator, InMemoryTemplateStore, InMemoryBlobStore
    >>> templates = InMemoryTemplateStore()
    >>> templates.add({"id": "letter", "name": "Letter", "pages": [{"number": 1}]},
    ...               [{"id": "f1", "name": "name", "type": "text", "page": 1,
    ...                 "position": {"x": 72, "y": 700}, "dimensions": {"width": 200, "height": 20}}])
    >>> generator = PDFGenerator(templates, InMemoryBlobStore())
    >>> result = generator.generate("letter", {"name": "Ada"})

Main Classes:
    - PDFGenerator: Validates requests and renders one document per call
    - BatchGenerator: Renders many records against one template concurrently
    - FieldProcessor: Draws a single field onto a page
    - DataTransformer: Converts raw values into display form

Stores:
    - InMemoryTemplateStore / InMemoryBlobStore: Dictionary backed stores
    - FileTemplateStore / FileBlobStore: Directory backed stores

Exceptions:
    - PDFGenerationError: Base exception, carries a machine readable code
    - ValidationError: The request is malformed
    - TemplateNotFoundError: No template with the requested id
    - TemplateLoadError: The template or its base document could not be read
    - InvalidBaseDocumentError: The base document is not a usable PDF
    - SerializationError: The output could not be written
    - FieldProcessingError: A single field failed to render

For CLI usage, use the 'pdf-generator' command after installation.
"""

__version__ = "1.0.0"
__author__ = "PDF Generator Contributors"
__license__ = "MIT"

# Core classes
from pdf_generator.generator import PDFGenerator
from pdf_generator.batch import BatchGenerator
from pdf_generator.processor import FieldProcessor
from pdf_generator.transformers import DataTransformer
from pdf_generator.validators import FieldValidator
from pdf_generator.config import GeneratorConfig

# Data types
from pdf_generator.types import (
    FieldDefinition,
    FieldType,
    TemplateDocument,
    TemplateSettings,
    PageDefinition,
)
from pdf_generator.options import (
    BatchOptions,
    GenerationOptions,
    GenerationRequest,
    OutputFormat,
    PDFMetadata,
    Quality,
    SecurityConfig,
    WatermarkConfig,
)
from pdf_generator.results import (
    BatchResult,
    ProcessingError,
    ProcessingMetadata,
    ProcessingResult,
    ProcessingWarning,
    ValidationResult,
)

# Stores
from pdf_generator.stores import (
    FileBlobStore,
    FileTemplateStore,
    InMemoryBlobStore,
    InMemoryTemplateStore,
)

# Exceptions
from pdf_generator.exceptions import (
    PDFGenerationError,
    ValidationError,
    TemplateNotFoundError,
    TemplateLoadError,
    InvalidBaseDocumentError,
    SerializationError,
    FieldProcessingError,
)

__all__ = [
    # Main classes
    "PDFGenerator",
    "BatchGenerator",
    "FieldProcessor",
    "DataTransformer",
    "FieldValidator",
    "GeneratorConfig",
    # Data types
    "FieldDefinition",
    "FieldType",
    "TemplateDocument",
    "TemplateSettings",
    "PageDefinition",
    "BatchOptions",
    "GenerationOptions",
    "GenerationRequest",
    "OutputFormat",
    "PDFMetadata",
    "Quality",
    "SecurityConfig",
    "WatermarkConfig",
    "BatchResult",
    "ProcessingError",
    "ProcessingMetadata",
    "ProcessingResult",
    "ProcessingWarning",
    "ValidationResult",
    # Stores
    "FileBlobStore",
    "FileTemplateStore",
    "InMemoryBlobStore",
    "InMemoryTemplateStore",
    # Exceptions
    "PDFGenerationError",
    "ValidationError",
    "TemplateNotFoundError",
    "TemplateLoadError",
    "InvalidBaseDocumentError",
    "SerializationError",
    "FieldProcessingError",
    # Version info
    "__version__",
]
