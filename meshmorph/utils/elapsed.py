import time


class StopWatch:

    def __init__(self):
        self.stime = time.perf_counter()
        self.etime = self.stime
        self.elapsed = 0.0

    def stop(self):
        """경과 시간(초)을 기록하고 반환"""
        self.etime = time.perf_counter()
        self.elapsed = self.etime - self.stime
        return self.elapsed

    def elapsed_ms(self):
        return self.elapsed * 1000.0
