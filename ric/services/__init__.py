"""Services module for run-in-container.

The lifecycle coordinator lives in :mod:`ric.services.lifecycle` and is not
re-exported here; it depends on :mod:`ric.utils.shutdown`, which in turn
imports the container cleanup actions from this package.
"""
