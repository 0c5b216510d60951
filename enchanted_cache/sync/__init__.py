"""
Synchronization package.

Holds the version gate, the write interceptor and the restore manager that
together keep the in-memory cache and durable storage in step.
"""

from .interceptor import WriteInterceptor
from .restore import RestoreManager
from .version_gate import GateOutcome, GateState, VersionGate

__all__ = ["GateOutcome", "GateState", "RestoreManager", "VersionGate", "WriteInterceptor"]
