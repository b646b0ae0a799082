"""
Voice Notes - dictated notes with AI summaries and task extraction.

A Python application that holds a dictated transcript, asks a hosted
LLM for a summary or a task list, and shares the result.
"""

__version__ = "0.1.0"
__author__ = "Brian Weaver"
__description__ = "Dictated notes with AI summaries and task extraction"
