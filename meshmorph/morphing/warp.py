"""
삼각형 단위 아핀 워프 렌더러

원본 삼각형 -> 목적 삼각형 아핀 변환으로 원본 이미지를 재샘플링하여
목적 삼각형 내부에만 기록한다.

퇴화 삼각형 (넓이 0, 세 꼭짓점이 한 직선 위) 은 예외 없이 건너뛴다.
삼각형 경계 픽셀은 이웃 삼각형이 다시 쓸 수 있으며, overlap 을 켜지 않으면
경계에 가는 틈이 보일 수 있다.
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from meshmorph.errors import CorrespondenceError, DegenerateTriangleError
from meshmorph.morphing.triangulation import Triangulation
from meshmorph.utils.elapsed import StopWatch
from meshmorph.utils.logger import get_logger

_logger = get_logger('워프')

DEGENERATE_AREA_EPSILON = 1e-6


@dataclass
class WarpStats:
    """warp_image 한 번의 결과 통계"""

    drawn: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.drawn + self.skipped


def _as_triangle(tri) -> np.ndarray:
    arr = np.asarray(tri, dtype=np.float64)
    if arr.shape != (3, 2):
        raise ValueError(f"삼각형은 (x, y) 좌표 3개여야 합니다: shape={arr.shape}")
    return arr


def triangle_area(tri) -> float:
    """삼각형 넓이 (외적 절댓값 / 2)"""
    p = _as_triangle(tri)
    v1 = p[1] - p[0]
    v2 = p[2] - p[0]
    return abs(v1[0] * v2[1] - v1[1] * v2[0]) / 2.0


def is_degenerate(tri) -> bool:
    return triangle_area(tri) <= DEGENERATE_AREA_EPSILON


def expand_triangle(tri, amount: float) -> np.ndarray:
    """각 꼭짓점을 무게중심에서 amount 만큼 더 멀리 이동

    이웃 삼각형끼리 목적 영역을 살짝 겹쳐 경계의 가는 틈을 줄이는 용도.
    """
    p = _as_triangle(tri)
    if amount == 0:
        return p.copy()
    centroid = p.mean(axis=0)
    offsets = p - centroid
    lengths = np.linalg.norm(offsets, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0
    return p + offsets / lengths * amount


def compute_affine_transform(src_tri, dst_tri) -> np.ndarray:
    """src_tri 세 꼭짓점을 dst_tri 로 보내는 2x3 아핀 행렬

    Raises:
        DegenerateTriangleError: 둘 중 하나라도 넓이가 0인 경우
    """
    src = _as_triangle(src_tri)
    dst = _as_triangle(dst_tri)
    if is_degenerate(src):
        raise DegenerateTriangleError(f"원본 삼각형이 퇴화되었습니다: {src.tolist()}")
    if is_degenerate(dst):
        raise DegenerateTriangleError(f"목적 삼각형이 퇴화되었습니다: {dst.tolist()}")
    return cv2.getAffineTransform(src.astype(np.float32), dst.astype(np.float32))


def apply_affine(matrix: np.ndarray, points) -> np.ndarray:
    """2x3 아핀 행렬을 (N,2) 좌표에 적용"""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    ones = np.ones((len(pts), 1), dtype=np.float64)
    return (matrix @ np.hstack([pts, ones]).T).T


def warp_triangle(source: np.ndarray, src_tri, dst_tri, destination: np.ndarray,
                  overlap: float = 0.0) -> bool:
    """원본 이미지의 src_tri 영역을 destination 의 dst_tri 영역으로 재샘플링

    Args:
        source: 원본 이미지 배열 (H, W, C)
        src_tri: 원본 삼각형 꼭짓점 3개
        dst_tri: 목적 삼각형 꼭짓점 3개
        destination: 결과를 기록할 배열 (source 와 채널 수 동일), 제자리 수정
        overlap: 목적 영역 확장량 (0이면 확장하지 않음)

    Returns:
        bool: 그렸으면 True, 퇴화/범위 밖이라 건너뛰었으면 False
    """
    if source.shape[2:] != destination.shape[2:]:
        raise ValueError(f"채널 수가 다릅니다: {source.shape} / {destination.shape}")

    try:
        matrix = compute_affine_transform(src_tri, dst_tri)
    except DegenerateTriangleError as e:
        _logger.debug(f"퇴화 삼각형 건너뜀: {e}")
        return False

    mask_tri = expand_triangle(dst_tri, overlap) if overlap > 0 else _as_triangle(dst_tri)

    # 목적 삼각형 바운딩 박스를 destination 범위로 자른다
    dst_height, dst_width = destination.shape[:2]
    x0 = max(int(np.floor(mask_tri[:, 0].min())), 0)
    y0 = max(int(np.floor(mask_tri[:, 1].min())), 0)
    x1 = min(int(np.floor(mask_tri[:, 0].max())) + 1, dst_width)
    y1 = min(int(np.floor(mask_tri[:, 1].max())) + 1, dst_height)
    if x1 <= x0 or y1 <= y0:
        return False

    # 바운딩 박스 로컬 좌표로 평행이동한 변환으로 원본 전체에서 샘플링
    local_matrix = matrix.copy()
    local_matrix[0, 2] -= x0
    local_matrix[1, 2] -= y0
    patch = cv2.warpAffine(
        source, local_matrix, (x1 - x0, y1 - y0),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_REFLECT_101
    )
    if patch.ndim < destination.ndim:
        # 단일 채널 (H, W, 1) 입력은 warpAffine 이 채널 축을 없앤다
        patch = patch[..., np.newaxis]

    mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
    local_tri = np.round(mask_tri - [x0, y0]).astype(np.int32)
    cv2.fillConvexPoly(mask, local_tri, 1)
    inside = mask.astype(bool)

    region = destination[y0:y1, x0:x1]
    region[inside] = patch[inside]
    return True


def interpolate_coords(co1: np.ndarray, co2: np.ndarray, t: float) -> np.ndarray:
    """좌표별 선형 보간 co1 + t * (co2 - co1)"""
    co1 = np.asarray(co1, dtype=np.float64)
    co2 = np.asarray(co2, dtype=np.float64)
    return co1 + t * (co2 - co1)


def paired_effective_coords(source_mesh: Triangulation,
                            target_mesh: Triangulation) -> Tuple[np.ndarray, np.ndarray]:
    """두 메시의 유효 좌표를 인덱스가 맞도록 만든다

    어느 한쪽에서라도 삭제 표시된 포인트는 양쪽 모두에서 제외한다.

    Raises:
        CorrespondenceError: 포인트 수가 다른 경우
    """
    if len(source_mesh.points) != len(target_mesh.points):
        raise CorrespondenceError(len(source_mesh.points), len(target_mesh.points))

    kept = [
        (p.coord, q.coord)
        for p, q in zip(source_mesh.points, target_mesh.points)
        if not (p.marked_for_deletion or q.marked_for_deletion)
    ]
    co1 = [p.coord for p in source_mesh.corners()] + [pair[0] for pair in kept]
    co2 = [p.coord for p in target_mesh.corners()] + [pair[1] for pair in kept]
    return np.array(co1, dtype=np.float64), np.array(co2, dtype=np.float64)


def warp_image(source: np.ndarray, source_mesh: Triangulation, target_mesh: Triangulation,
               destination: np.ndarray, t: Optional[float] = None,
               overlap: float = 0.0) -> WarpStats:
    """source_mesh 모양의 이미지를 target_mesh 모양 (또는 중간 모양) 으로 워프

    토폴로지는 항상 source_mesh 좌표로 삼각분할한 인덱스 삼중쌍을 쓰고,
    같은 인덱스를 target 좌표에 그대로 적용한다.

    Args:
        source: source_mesh 좌표계의 원본 이미지 (H, W, C)
        source_mesh: 원본 메시
        target_mesh: 목표 메시 (포인트 수가 같아야 함)
        destination: 결과 배열, 먼저 0으로 지워진다
        t: 보간 파라미터. None 이면 target_mesh 모양 그대로
        overlap: 삼각형 목적 영역 확장량

    Returns:
        WarpStats: 그린/건너뛴 삼각형 수

    Raises:
        CorrespondenceError: 두 메시의 포인트 수가 다른 경우 (destination 은 변경되지 않음)
    """
    pairs = triangle_pairs(source_mesh, target_mesh, t)

    watch = StopWatch()
    destination[...] = 0

    stats = WarpStats()
    for corners1, corners2 in pairs:
        if warp_triangle(source, corners1, corners2, destination, overlap=overlap):
            stats.drawn += 1
        else:
            stats.skipped += 1

    watch.stop()
    _logger.debug(
        f"워프 완료: t={t}, 삼각형 {stats.drawn}개 그림, {stats.skipped}개 건너뜀, "
        f"{watch.elapsed_ms():.1f}ms"
    )
    return stats


def triangle_pairs(source_mesh: Triangulation, target_mesh: Triangulation,
                   t: Optional[float] = None) -> Sequence[Tuple[np.ndarray, np.ndarray]]:
    """(원본 삼각형, 목적 삼각형) 좌표 쌍 목록

    Raises:
        CorrespondenceError: 포인트 수가 다른 경우
    """
    co1, co2 = paired_effective_coords(source_mesh, target_mesh)
    if t is not None:
        co2 = interpolate_coords(co1, co2, t)
    pairs = []
    for triple in source_mesh.triangulate(co1):
        indices = [int(i) for i in triple]
        pairs.append((co1[indices], co2[indices]))
    return pairs
