"""
Tkinter after() 기반 프레임 스케줄러
"""
import tkinter as tk

from meshmorph.morphing.animator import FrameScheduler


class TkFrameScheduler(FrameScheduler):
    """interval_ms 마다 한 번 콜백을 호출하는 스케줄러"""

    def __init__(self, widget: tk.Misc, interval_ms: int = 16):
        self.widget = widget
        self.interval_ms = interval_ms

    def request_frame(self, callback):
        return self.widget.after(self.interval_ms, callback)

    def cancel_frame(self, handle):
        self.widget.after_cancel(handle)
