"""
Strategy Extraction Pipeline

Turns an unstructured trading-education video (or a pasted transcript) into a
structured trading strategy with entry rules, exit rules and risk parameters,
a calibrated confidence score and an accept/review/reject decision.

Usage:
    strategy-extraction serve --port 8000
    strategy-extraction extract --url https://www.youtube.com/watch?v=XXXXXXXXXXX
    strategy-extraction extract --transcript-file transcript.txt
"""

__version__ = "0.1.0"
__author__ = "Strategy Extraction"
