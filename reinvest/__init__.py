"""Fund distribution reinvestment tracker.

Parses fund distribution files, loads NAV history and computes how a holding
grows when every distribution is reinvested.
"""

__version__ = "0.1.0"
