"""
Money Flow database migration runner.

Applies versioned ``.sql`` changesets to the application database exactly
once, in filename order, one transaction per changeset.
"""

__version__ = "1.0.0"
