"""
zapsender: CSV-driven, paced WhatsApp message dispatcher.
"""

__version__ = "0.1.0"
