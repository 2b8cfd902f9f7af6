"""
YieldFetch - US Treasury yield curve downloader.

Fetches the daily Treasury yield curve XML for every year since 1990,
publishing each year atomically into a destination directory.
"""

__version__ = "0.1.0"
__app_name__ = "yieldfetch"
