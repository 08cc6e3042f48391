"""
ArcShelf - catalog and deployment manager for media archives
"""

__version__ = "0.1.0"
