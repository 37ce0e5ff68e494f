"""
Resumable multi-threaded same-site crawler.
"""

__version__ = "1.0.0"
