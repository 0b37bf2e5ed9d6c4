"""
Monkey AI - local coding assistant backed by an Ollama server
"""

__version__ = "0.2.0"
