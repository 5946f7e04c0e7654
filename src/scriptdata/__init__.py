"""
scriptdata - Game Script Data Extractor

Pulls data declarations out of a live game script, evaluates them in an
isolated sandbox and writes the results as clean JSON documents.
"""

__version__ = "0.1.0"
__author__ = "scriptdata contributors"

from scriptdata.parser import extract_declaration, extract_function, find_matching_span
