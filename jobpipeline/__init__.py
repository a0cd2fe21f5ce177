"""
jobpipeline - queue-mediated job pipeline.

Trigger processor turns trigger messages into correlated jobs and fans out
background work; background processor executes jobs and writes per-job logs.
"""

__version__ = "0.1.0"
