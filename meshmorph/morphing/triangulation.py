"""
삼각분할 모듈

랜드마크 포인트 + 도메인 네 모서리를 Delaunay Triangulation 으로 분할한다.

개념 정의:
- 랜드마크(Landmark): 사용자가 찍은 포인트. 리스트 인덱스가 곧 정체성이며,
  짝 메시의 같은 인덱스 포인트와 대응한다.
- 유효 포인트(Effective Points): 네 모서리 (0,0), (w,0), (0,h), (w,h) 뒤에
  삭제 표시되지 않은 랜드마크를 삽입 순서대로 붙인 리스트.
- 삼각형(Triangle): 유효 포인트 인덱스 3개 (또는 좌표 3개).
- 엣지(Edge): 삼각형 변을 (작은 인덱스, 큰 인덱스)로 중복 제거한 선분.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import Delaunay

from meshmorph.errors import PointIndexError
from meshmorph.utils.logger import get_logger

_logger = get_logger('삼각분할')

Coord = Tuple[float, float]
Triangulate = Callable[[np.ndarray], np.ndarray]


@dataclass
class Point:
    """랜드마크 포인트 (정수 좌표 + 삭제 표시)"""

    x: int
    y: int
    marked_for_deletion: bool = False

    @classmethod
    def create(cls, coord: Sequence[float]) -> 'Point':
        """좌표를 가장 가까운 정수로 반올림하여 생성"""
        x, y = coord
        return cls(_round_half_up(x), _round_half_up(y))

    @property
    def coord(self) -> Tuple[int, int]:
        return (self.x, self.y)


def _round_half_up(value: float) -> int:
    # round()는 은행가 반올림이라 2.5 -> 2 가 된다
    return int(np.floor(float(value) + 0.5))


class DelaunayTriangulator:
    """scipy.spatial.Delaunay 기반 삼각분할 (인스턴스별 캐시)

    호출 형식: triangulate(points (N,2)) -> (M,3) int 인덱스 배열
    """

    def __init__(self, cache_size: int = 5):
        self.cache_size = cache_size
        self._cache: Dict[bytes, np.ndarray] = {}

    def __call__(self, points: np.ndarray) -> np.ndarray:
        points = np.ascontiguousarray(points, dtype=np.float64)
        cache_key = points.tobytes()

        simplices = self._cache.get(cache_key)
        if simplices is None:
            simplices = Delaunay(points).simplices.astype(np.int64)

            # 캐시 크기 제한 (가장 오래된 항목 제거)
            if self.cache_size > 0:
                if len(self._cache) >= self.cache_size:
                    oldest_key = next(iter(self._cache))
                    del self._cache[oldest_key]
                self._cache[cache_key] = simplices

        return simplices.copy()

    def clear_cache(self):
        self._cache.clear()


class Triangulation:
    """이미지 한 장에 대응하는 랜드마크 메시"""

    def __init__(self, size: Tuple[int, int], points: Optional[Sequence[Coord]] = None,
                 triangulator: Optional[Triangulate] = None):
        """
        Args:
            size: 도메인 크기 (width, height)
            points: 초기 랜드마크 좌표 리스트 (선택)
            triangulator: 포인트 배열 -> 인덱스 삼중쌍 배열 함수 (기본: DelaunayTriangulator)
        """
        self.width = 0
        self.height = 0
        self.resize(*size)
        self.points: List[Point] = [Point.create(coord) for coord in (points or [])]
        self.triangulate = triangulator or DelaunayTriangulator()

    def __len__(self):
        return len(self.points)

    def __repr__(self):
        return f"Triangulation(size={self.size}, points={len(self.points)})"

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def resize(self, width: int, height: int):
        """도메인 크기 변경 (포인트 좌표는 그대로 유지)"""
        if width <= 0 or height <= 0:
            raise ValueError(f"도메인 크기는 0보다 커야 합니다: {width}x{height}")
        self.width = int(width)
        self.height = int(height)

    # ========== 파생 데이터 ==========

    def corners(self) -> List[Point]:
        w, h = self.width, self.height
        return [Point(0, 0), Point(w, 0), Point(0, h), Point(w, h)]

    def effective_points(self) -> List[Point]:
        """네 모서리 + 삭제 표시되지 않은 포인트 (삽입 순서)"""
        return self.corners() + [p for p in self.points if not p.marked_for_deletion]

    def effective_coords(self) -> np.ndarray:
        return np.array([p.coord for p in self.effective_points()], dtype=np.float64)

    def triangles(self, as_indices: bool = False) -> list:
        """유효 포인트의 삼각형 리스트

        Args:
            as_indices: True면 유효 포인트 인덱스 삼중쌍, False면 좌표 삼중쌍

        Returns:
            [(a, b, c), ...] 또는 [((x, y), (x, y), (x, y)), ...]
        """
        coords = self.effective_coords()
        simplices = self.triangulate(coords)
        index_triples = [tuple(int(i) for i in simplex) for simplex in simplices]
        if as_indices:
            return index_triples
        return [tuple(tuple(coords[i]) for i in triple) for triple in index_triples]

    def edges(self) -> List[Tuple[int, int]]:
        """삼각형 변을 중복 없이 (min, max) 인덱스 쌍으로 반환"""
        return edges_from_triangles(self.triangles(as_indices=True))

    # ========== 포인트 편집 ==========

    def check_index(self, index: int):
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
            raise PointIndexError(index, len(self.points))
        if index < 0 or index >= len(self.points):
            raise PointIndexError(index, len(self.points))

    def add_point(self, coord: Sequence[float]) -> int:
        """포인트를 리스트 끝에 추가하고 인덱스 반환"""
        self.points.append(Point.create(coord))
        return len(self.points) - 1

    def remove_point_at(self, index: int) -> Point:
        """포인트를 리스트에서 실제로 제거 (이후 인덱스가 하나씩 당겨진다)"""
        self.check_index(index)
        return self.points.pop(index)

    def mark_for_deletion(self, index: int, marked: bool = True):
        """삭제 표시 (유효 포인트/삼각형/엣지에서 제외되지만 리스트에는 남음)"""
        self.check_index(index)
        self.points[index].marked_for_deletion = marked

    def move_point(self, index: int, coord: Sequence[float], delete_threshold: float = 20) -> bool:
        """포인트 좌표 교체

        y < -delete_threshold 이면 좌표를 클램핑하지 않고 삭제 표시만 한다.
        그 외에는 [0, w] x [0, h] 로 클램핑하고 삭제 표시를 해제한다.

        Returns:
            bool: 이동 후 삭제 표시 여부
        """
        self.check_index(index)
        x, y = coord
        point = self.points[index]

        if y < -delete_threshold:
            point.x, point.y = _round_half_up(x), _round_half_up(y)
            point.marked_for_deletion = True
        else:
            point.x = _round_half_up(min(max(x, 0), self.width))
            point.y = _round_half_up(min(max(y, 0), self.height))
            point.marked_for_deletion = False
        return point.marked_for_deletion

    def clear(self):
        self.points.clear()


def edges_from_triangles(triangles: Sequence[Sequence[int]]) -> List[Tuple[int, int]]:
    """삼각형 인덱스 리스트에서 중복 없는 엣지 목록 생성 (첫 등장 순서 유지)"""
    drawn = set()
    edges = []

    def add_if_new(p1, p2):
        key = (p1, p2) if p1 < p2 else (p2, p1)
        if key in drawn:
            return
        drawn.add(key)
        edges.append(key)

    for a, b, c in triangles:
        add_if_new(a, b)
        add_if_new(b, c)
        add_if_new(c, a)
    return edges


def topology_matches(first: Triangulation, second: Triangulation) -> bool:
    """두 메시를 각각 삼각분할했을 때 같은 인덱스 삼중쌍 집합이 나오는지 확인

    포인트 수가 같아도 위치가 다르면 Delaunay 결과가 달라질 수 있다.
    """
    if len(first.effective_points()) != len(second.effective_points()):
        return False
    first_set = {tuple(sorted(t)) for t in first.triangles(as_indices=True)}
    second_set = {tuple(sorted(t)) for t in second.triangles(as_indices=True)}
    matched = first_set == second_set
    if not matched:
        _logger.debug(f"토폴로지 불일치: {len(first_set ^ second_set)}개 삼각형 차이")
    return matched
