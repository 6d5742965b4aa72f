"""
두 메시의 포인트 대응 관리

A.points[i] 와 B.points[i] 는 같은 랜드마크이다.
모든 공개 변경 이후 len(A.points) == len(B.points) 가 유지되어야 한다.
"""
from dataclasses import dataclass
from typing import List, Tuple

from meshmorph.errors import CorrespondenceError
from meshmorph.morphing.triangulation import Point, Triangulation
from meshmorph.utils.logger import get_logger

_logger = get_logger('대응관리')


@dataclass
class MeshPair:
    """두 이미지에 대응하는 메시 쌍"""

    first: Triangulation
    second: Triangulation

    def __getitem__(self, slot: int) -> Triangulation:
        if slot == 0:
            return self.first
        if slot == 1:
            return self.second
        raise IndexError(f"메시 슬롯은 0 또는 1 이어야 합니다: {slot}")

    def other(self, slot: int) -> Triangulation:
        return self[1 - slot]

    @property
    def counts(self) -> Tuple[int, int]:
        return (len(self.first.points), len(self.second.points))

    def is_balanced(self) -> bool:
        first_count, second_count = self.counts
        return first_count == second_count


class CorrespondenceSynchronizer:
    """포인트 추가/삭제 후 두 메시의 포인트 수와 순서를 맞춘다"""

    def on_point_added(self, pair: MeshPair) -> List[int]:
        """짧은 쪽 메시에 긴 쪽의 같은 인덱스 좌표를 복사해 붙인다

        Returns:
            list: 짧은 쪽 메시에 새로 추가된 인덱스
        """
        a, b = pair.first, pair.second
        source, target = (a, b) if len(a.points) > len(b.points) else (b, a)

        added = []
        while len(target.points) < len(source.points):
            twin = source.points[len(target.points)]
            added.append(target.add_point(twin.coord))

        if added:
            _logger.debug(f"대응 포인트 {len(added)}개 추가: {added}")
        return added

    def on_point_deleted(self, pair: MeshPair, index: int) -> Tuple[Point, Point]:
        """같은 인덱스의 포인트를 두 메시에서 모두 제거

        인덱스 검증을 먼저 끝낸 뒤 제거하므로 실패해도 두 메시는 변경되지 않는다.

        Returns:
            tuple: (첫 번째 메시에서 제거된 포인트, 두 번째 메시에서 제거된 포인트)
        """
        for mesh in (pair.first, pair.second):
            mesh.check_index(index)

        removed = (pair.first.remove_point_at(index), pair.second.remove_point_at(index))
        _logger.debug(f"포인트 {index} 삭제: {removed[0].coord} / {removed[1].coord}")
        return removed

    def ensure_balanced(self, pair: MeshPair) -> List[int]:
        """중단된 다중 단계 변경 이후 렌더링 전에 다시 균형을 맞춘다"""
        if pair.is_balanced():
            return []
        _logger.warning(f"포인트 수 불일치 감지, 재정렬: {pair.counts}")
        return self.on_point_added(pair)

    def validate(self, pair: MeshPair):
        """포인트 수가 다르면 CorrespondenceError"""
        if not pair.is_balanced():
            raise CorrespondenceError(*pair.counts)
