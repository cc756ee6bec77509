"""
SheetSearch - searchable, change-tracked view of a published spreadsheet.
"""

__version__ = "1.0.0"
