"""Peqy Action - trigger Peqy code reviews from pull request workflows.

This package reads the pull request identity from the workflow runner,
validates it, and POSTs it to the Peqy review-trigger API with bounded
retries and structured outputs for the surrounding automation.
"""

__version__ = "1.0.0"
