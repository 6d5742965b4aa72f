"""
Tkinter 기반 모핑 패널
"""
from .panel import MorphPanel

__all__ = ['MorphPanel']
