"""
Paced, sequential message dispatch.
"""

from zapsender.dispatch.models import DispatchConfig, DispatchState, DispatchTally

__all__ = ["DispatchConfig", "DispatchState", "DispatchTally"]
