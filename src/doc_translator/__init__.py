"""
doc_translator - translate uploaded documents into PDF and DOCX renditions.
"""

__version__ = "1.0.0"
