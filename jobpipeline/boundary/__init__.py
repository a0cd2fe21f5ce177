"""
Boundary layer: interfaces to the queue service and the log sink.
"""

from jobpipeline.boundary.protocols import LogSink, QueueClient

__all__ = ["LogSink", "QueueClient"]
