"""
dartscore - darts scoring engine for 501, 301 and count-up games.
"""
__version__ = "0.1.0"
