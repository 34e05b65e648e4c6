"""
Annotation export.
"""
from .pdf_exporter import PDFExporter
from .text_export import to_json, to_markdown

__all__ = ['PDFExporter', 'to_json', 'to_markdown']
