"""Version information for http-message-sig"""

__version__ = "0.1.0"
