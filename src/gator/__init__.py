"""
Gator - command-line RSS feed aggregator.

Users register, follow feeds, and the aggregator periodically fetches the
least recently fetched feed and stores its items as posts.
"""

__version__ = "0.1.0"
