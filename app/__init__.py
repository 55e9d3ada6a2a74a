"""Marketplace external supplier import service."""

from dotenv import find_dotenv, load_dotenv

# Settings are cached on first use, and submodules read them at import time.
load_dotenv(find_dotenv(usecwd=True))

__version__ = "0.1.0"
