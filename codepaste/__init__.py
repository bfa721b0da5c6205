"""
codepaste - Dump a project into one LLM-ready paste.
A CLI tool that collects a project's source files, manifest and README into
fenced code blocks, with optional interactive selection of functions.
"""

__version__ = "0.3.0"

from codepaste.config import Config, Language
from codepaste.core import CodePaster, Paste
from codepaste.extractors import FunctionInfo

__all__ = ["CodePaster", "Config", "FunctionInfo", "Language", "Paste"]
