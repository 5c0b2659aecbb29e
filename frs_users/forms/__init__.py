"""
WTForms package
"""

from .importer import ImportForm

__all__ = [
    "ImportForm",
]
