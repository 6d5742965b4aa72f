"""
모핑 애니메이션 구동기

호스트의 프레임 스케줄러 (화면 프레임마다 한 번 호출되는 콜백) 위에서
t = 경과시간 / duration 을 계산해 on_frame(t) 를 호출한다.

상태: IDLE -> RUNNING -> IDLE (취소 또는 자연 종료)
- frame_throttle 틱마다 한 번만 렌더링한다 (기본 2: 절반 속도).
- 마지막 틱은 스로틀과 관계없이 정확히 t=1.0 으로 렌더링한다.
- 각 실행은 CancellationToken 을 가지며 틱 경계마다 확인한다.
"""
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional

from meshmorph.utils.logger import error, get_logger

_logger = get_logger('애니메이션')


class AnimationState(Enum):
    IDLE = 'idle'
    RUNNING = 'running'


class CancellationToken:
    """애니메이션 실행 한 번에 대응하는 취소 토큰"""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True


class FrameScheduler(ABC):
    """호스트의 프레임 콜백 스케줄러"""

    @abstractmethod
    def request_frame(self, callback: Callable[[], None]) -> Any:
        """다음 프레임에 callback 을 한 번 호출하도록 예약하고 핸들 반환"""

    @abstractmethod
    def cancel_frame(self, handle: Any):
        """예약된 콜백 취소"""


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class MorphAnimator:
    """취소 가능한 프레임 구동 애니메이션"""

    def __init__(self, scheduler: FrameScheduler, frame_throttle: int = 2,
                 clock: Optional[Callable[[], float]] = None):
        """
        Args:
            scheduler: 프레임 스케줄러
            frame_throttle: N 틱마다 한 번 렌더링 (1이면 매 틱)
            clock: 밀리초 단위 시계 (기본: time.monotonic 기반)
        """
        if frame_throttle < 1:
            raise ValueError(f"frame_throttle 은 1 이상이어야 합니다: {frame_throttle}")
        self.scheduler = scheduler
        self.frame_throttle = int(frame_throttle)
        self.clock = clock or _monotonic_ms

        self._state = AnimationState.IDLE
        self._token: Optional[CancellationToken] = None
        self._pending = None
        self._duration_ms = 0.0
        self._start_ms = 0.0
        self._tick_count = 0
        self._on_frame: Optional[Callable[[float], None]] = None
        self._on_finish: Optional[Callable[[], None]] = None
        self.last_t: Optional[float] = None

    @property
    def state(self) -> AnimationState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is AnimationState.RUNNING

    def progress(self) -> float:
        """현재 진행률 t (0.0 ~ 1.0)"""
        if self._duration_ms <= 0:
            return 1.0
        elapsed = self.clock() - self._start_ms
        return min(max(elapsed / self._duration_ms, 0.0), 1.0)

    def start(self, duration_ms: float, on_frame: Callable[[float], None],
              on_finish: Optional[Callable[[], None]] = None) -> CancellationToken:
        """애니메이션 시작 (실행 중인 애니메이션은 먼저 취소)

        Args:
            duration_ms: 전체 길이 (밀리초)
            on_frame: 렌더링 콜백 on_frame(t)
            on_finish: 자연 종료 시 호출 (취소 시에는 호출되지 않음)

        Returns:
            CancellationToken: 이번 실행의 취소 토큰
        """
        self.cancel()

        token = CancellationToken()
        self._token = token
        self._duration_ms = float(duration_ms)
        self._start_ms = self.clock()
        self._tick_count = 0
        self._on_frame = on_frame
        self._on_finish = on_finish
        self.last_t = None
        self._state = AnimationState.RUNNING

        _logger.debug(f"애니메이션 시작: {duration_ms}ms, 스로틀 {self.frame_throttle}")
        self._schedule(token)
        return token

    def cancel(self):
        """실행 중인 애니메이션 취소 (IDLE 상태에서 호출해도 안전)"""
        token = self._token
        if token is None:
            return

        token.cancel()
        if self._pending is not None:
            self.scheduler.cancel_frame(self._pending)
        self._reset()
        _logger.debug(f"애니메이션 취소: 마지막 t={self.last_t}")

    def _reset(self):
        self._pending = None
        self._token = None
        self._on_frame = None
        self._on_finish = None
        self._state = AnimationState.IDLE

    def _schedule(self, token: CancellationToken):
        self._pending = self.scheduler.request_frame(lambda: self._tick(token))

    def _tick(self, token: CancellationToken):
        if token.cancelled or token is not self._token:
            return
        self._pending = None
        self._tick_count += 1

        t = self.progress()
        done = t >= 1.0

        if done or self._tick_count % self.frame_throttle == 0:
            on_frame = self._on_frame
            try:
                on_frame(t)
            except Exception as e:
                error('애니메이션', f"프레임 렌더링 실패 (t={t:.3f})", e)
                self.cancel()
                raise
            self.last_t = t
            # on_frame 안에서 cancel/start 가 호출되었을 수 있음
            if token.cancelled:
                return

        if done:
            on_finish = self._on_finish
            self._reset()
            _logger.debug(f"애니메이션 완료: 틱 {self._tick_count}회")
            if on_finish is not None:
                on_finish()
            return

        self._schedule(token)
