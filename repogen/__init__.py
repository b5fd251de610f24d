"""
repogen - builds the repo.json plugin index for a distribution channel.
"""

__version__ = "0.1.0"
