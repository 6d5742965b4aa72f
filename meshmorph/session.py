"""
모핑 세션

두 메시, 두 이미지, 선택 상태, 애니메이션을 한 곳에서 소유하는 세션 객체.
애플리케이션 셸이 생성해 각 컴포넌트에 참조로 넘긴다.

모든 변경 연산 (add_point, move_point, delete_point ...) 은 ChangeEvent 를
반환하고 구독자에게 동기적으로 알린다.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from meshmorph.errors import ImageNotReadyError
from meshmorph.image_source import ImageSource
from meshmorph.morphing.animator import CancellationToken, FrameScheduler, MorphAnimator
from meshmorph.morphing.correspondence import CorrespondenceSynchronizer, MeshPair
from meshmorph.morphing.triangulation import Triangulation, topology_matches
from meshmorph.morphing.warp import WarpStats, warp_image
from meshmorph.utils.logger import get_logger
from meshmorph.utils.settings import MorphSettings

_logger = get_logger('세션')

SLOTS = (0, 1)


class ChangeKind(Enum):
    ADDED = 'added'
    MOVED = 'moved'
    DELETED = 'deleted'
    SELECTED = 'selected'
    CLEARED = 'cleared'
    RESIZED = 'resized'
    IMAGE_LOADED = 'image_loaded'


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    slot: Optional[int] = None
    index: Optional[int] = None


@dataclass
class MorphFrame:
    """한 프레임의 렌더링 결과 (second 를 opacity 로 first 위에 표시)"""

    t: float
    first: np.ndarray
    second: np.ndarray
    opacity: float
    first_stats: WarpStats
    second_stats: WarpStats


Listener = Callable[[ChangeEvent], None]


class MorphSession:
    """편집/렌더링/애니메이션 세션 컨텍스트"""

    def __init__(self, settings: Optional[MorphSettings] = None,
                 scheduler: Optional[FrameScheduler] = None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Args:
            settings: 설정 (기본값: MorphSettings())
            scheduler: 애니메이션용 프레임 스케줄러 (없으면 start_morph 불가)
            clock: 애니메이션 시계 (밀리초)
        """
        self.settings = settings or MorphSettings()
        size = self.settings.domain_size
        self.meshes = MeshPair(Triangulation(size), Triangulation(size))
        self.images = [ImageSource('image1'), ImageSource('image2')]
        self.synchronizer = CorrespondenceSynchronizer()
        self.selected_index: Optional[int] = None
        self.animator = None
        if scheduler is not None:
            self.animator = MorphAnimator(scheduler, frame_throttle=self.settings.frame_throttle, clock=clock)
        self.last_frame: Optional[MorphFrame] = None

        self._listeners: List[Listener] = []
        self._sources: List[Optional[np.ndarray]] = [None, None]

    # ========== 변경 알림 ==========

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """변경 알림 구독, 구독 해제 함수를 반환"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self, kind: ChangeKind, slot: Optional[int] = None,
                index: Optional[int] = None) -> ChangeEvent:
        event = ChangeEvent(kind, slot, index)
        for listener in list(self._listeners):
            listener(event)
        return event

    # ========== 조회 ==========

    @property
    def size(self) -> Tuple[int, int]:
        return self.meshes.first.size

    def mesh(self, slot: int) -> Triangulation:
        return self.meshes[slot]

    # ========== 포인트 편집 ==========

    def add_point(self, slot: int, coord: Sequence[float]) -> ChangeEvent:
        """slot 메시에 포인트 추가 -> 다른 메시에 같은 좌표 쌍둥이 추가 -> 새 포인트 선택"""
        self.stop_morph()
        index = self.meshes[slot].add_point(coord)
        self.synchronizer.on_point_added(self.meshes)
        self.selected_index = index
        return self._notify(ChangeKind.ADDED, slot, index)

    def delete_point(self, index: int) -> ChangeEvent:
        """두 메시에서 같은 인덱스의 포인트를 삭제"""
        self.synchronizer.on_point_deleted(self.meshes, index)
        if self.selected_index is not None:
            if self.selected_index == index:
                self.selected_index = None
            elif self.selected_index > index:
                self.selected_index -= 1
        return self._notify(ChangeKind.DELETED, None, index)

    def move_point(self, slot: int, index: int, coord: Sequence[float]) -> ChangeEvent:
        """포인트 이동 (도메인으로 클램핑, 상단 밖으로 멀리 끌면 삭제 표시)"""
        marked = self.meshes[slot].move_point(index, coord, self.settings.delete_threshold)
        if marked:
            _logger.debug(f"포인트 {index} 삭제 대기 (슬롯 {slot})")
        return self._notify(ChangeKind.MOVED, slot, index)

    def begin_drag(self, slot: int, index: int) -> ChangeEvent:
        self.meshes[slot].check_index(index)
        return self.select(index)

    def end_drag(self, slot: int, index: int) -> Optional[ChangeEvent]:
        """드래그 종료: 삭제 표시된 포인트면 두 메시에서 삭제"""
        mesh = self.meshes[slot]
        mesh.check_index(index)
        if mesh.points[index].marked_for_deletion:
            return self.delete_point(index)
        return None

    def select(self, index: Optional[int]) -> ChangeEvent:
        """선택 변경 (실행 중인 애니메이션은 중지)"""
        self.stop_morph()
        if index is not None:
            self.meshes.first.check_index(index)
        self.selected_index = index
        return self._notify(ChangeKind.SELECTED, None, index)

    def clear(self) -> ChangeEvent:
        self.stop_morph()
        self.meshes.first.clear()
        self.meshes.second.clear()
        self.selected_index = None
        return self._notify(ChangeKind.CLEARED)

    # ========== 이미지 ==========

    def load_image(self, slot: int, src: Union[str, Image.Image]) -> ChangeEvent:
        """이미지를 불러오고 도메인 크기를 맞춘다

        두 이미지가 모두 로드되면 첫 번째 이미지의 맞춤 크기로 둘 다 렌더링한다.
        """
        _check_slot(slot)
        self.stop_morph()
        self.images[slot].load(src)
        self._update_domain(slot)
        return self._notify(ChangeKind.IMAGE_LOADED, slot)

    def _update_domain(self, loaded_slot: int):
        max_w, max_h = self.settings.max_display_size
        first, second = self.images
        if first.is_loaded and second.is_loaded:
            width, height = first.clamp_size(max_w, max_h)
        else:
            width, height = self.images[loaded_slot].clamp_size(max_w, max_h)
        width = max(int(round(width)), 1)
        height = max(int(round(height)), 1)

        for mesh in (self.meshes.first, self.meshes.second):
            mesh.resize(width, height)
        self._sources = [None, None]
        _logger.info(f"도메인 크기: {width}x{height}")
        self._notify(ChangeKind.RESIZED)

    def source_buffer(self, slot: int) -> np.ndarray:
        """slot 이미지를 도메인 크기로 렌더링한 RGBA 버퍼 (캐시)

        Raises:
            ImageNotReadyError: 이미지가 아직 로드되지 않은 경우
        """
        _check_slot(slot)
        image = self.images[slot]
        if not image.is_loaded:
            raise ImageNotReadyError(f"이미지 {slot + 1}이(가) 아직 로드되지 않았습니다")
        buffer = self._sources[slot]
        if buffer is None:
            buffer = image.render(self.size)
            self._sources[slot] = buffer
        return buffer

    # ========== 렌더링 ==========

    def _new_buffer(self) -> np.ndarray:
        width, height = self.size
        return np.zeros((height, width, 4), dtype=np.uint8)

    def render_static_warp(self, slot: int = 0, destination: Optional[np.ndarray] = None) -> np.ndarray:
        """slot 이미지를 다른 메시 모양으로 워프한 결과"""
        self.synchronizer.ensure_balanced(self.meshes)
        source = self.source_buffer(slot)
        if destination is None:
            destination = self._new_buffer()
        warp_image(source, self.meshes[slot], self.meshes.other(slot), destination,
                   overlap=self.settings.warp_overlap)
        return destination

    def render_frame(self, t: float) -> MorphFrame:
        """t 시점 프레임: 1->2 워프(t), 2->1 워프(1-t), 두 번째 버퍼 불투명도 t"""
        self.synchronizer.ensure_balanced(self.meshes)
        first_source = self.source_buffer(0)
        second_source = self.source_buffer(1)
        overlap = self.settings.warp_overlap

        first = self._new_buffer()
        second = self._new_buffer()
        first_stats = warp_image(first_source, self.meshes.first, self.meshes.second, first,
                                 t=t, overlap=overlap)
        second_stats = warp_image(second_source, self.meshes.second, self.meshes.first, second,
                                  t=1 - t, overlap=overlap)

        frame = MorphFrame(t=t, first=first, second=second, opacity=t,
                           first_stats=first_stats, second_stats=second_stats)
        self.last_frame = frame
        return frame

    # ========== 애니메이션 ==========

    def start_morph(self, on_frame: Callable[[MorphFrame], None],
                    duration_ms: Optional[float] = None,
                    on_finish: Optional[Callable[[], None]] = None) -> CancellationToken:
        """모핑 애니메이션 시작

        Raises:
            RuntimeError: 프레임 스케줄러 없이 생성된 세션
            ImageNotReadyError: 두 이미지가 모두 로드되지 않은 경우
            CorrespondenceError: 두 메시의 포인트 수가 다른 경우
        """
        if self.animator is None:
            raise RuntimeError("프레임 스케줄러가 없어 애니메이션을 시작할 수 없습니다")
        for slot in SLOTS:
            if not self.images[slot].is_loaded:
                raise ImageNotReadyError(f"이미지 {slot + 1}이(가) 아직 로드되지 않았습니다")
        self.synchronizer.validate(self.meshes)

        if not topology_matches(self.meshes.first, self.meshes.second):
            _logger.info("두 메시의 Delaunay 토폴로지가 다릅니다. 각 방향은 원본 메시 토폴로지를 사용합니다.")

        if duration_ms is None:
            duration_ms = self.settings.animation_duration_ms

        def frame(t):
            on_frame(self.render_frame(t))

        return self.animator.start(duration_ms, frame, on_finish)

    def stop_morph(self):
        if self.animator is not None:
            self.animator.cancel()

    @property
    def is_morphing(self) -> bool:
        return self.animator is not None and self.animator.is_running


def _check_slot(slot: int):
    if slot not in SLOTS:
        raise IndexError(f"이미지 슬롯은 0 또는 1 이어야 합니다: {slot}")
