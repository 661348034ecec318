"""
UrgeGuard: relapse-risk estimation and intervention-trigger engine.
"""

__version__ = "0.1.0"
