"""
Hinyari: nationwide AMeDAS temperature ranking with cached location descriptions.
"""
__version__ = "0.1.0"
