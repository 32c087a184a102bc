"""
Pod Deleter - Kubernetes Pod Failure Reaper

A Python application that periodically deletes pods stuck in failure states
such as CrashLoopBackOff so their owning controllers recreate them.
"""

__version__ = "1.0.0"
__author__ = "Pod Deleter Team"
