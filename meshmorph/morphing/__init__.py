"""
메시 모핑 엔진

개념 정의:
- 삼각분할(Triangulation): 랜드마크 + 네 모서리의 Delaunay 메시
- 대응(Correspondence): 두 메시의 같은 인덱스 포인트가 같은 랜드마크
- 아핀 워프(Affine Warp): 삼각형 단위 재샘플링
- 애니메이션(Animator): 시간 파라미터 t 로 보간 + 크로스 디졸브
"""
from .triangulation import (
    Point,
    Triangulation,
    DelaunayTriangulator,
    edges_from_triangles,
    topology_matches
)
from .correspondence import (
    MeshPair,
    CorrespondenceSynchronizer
)
from .warp import (
    WarpStats,
    compute_affine_transform,
    warp_triangle,
    warp_image,
    interpolate_coords
)
from .animator import (
    AnimationState,
    CancellationToken,
    FrameScheduler,
    MorphAnimator
)
from .blend import (
    compose_cross_dissolve
)

__all__ = [
    # 삼각분할
    'Point',
    'Triangulation',
    'DelaunayTriangulator',
    'edges_from_triangles',
    'topology_matches',
    # 대응 관리
    'MeshPair',
    'CorrespondenceSynchronizer',
    # 워프
    'WarpStats',
    'compute_affine_transform',
    'warp_triangle',
    'warp_image',
    'interpolate_coords',
    # 애니메이션
    'AnimationState',
    'CancellationToken',
    'FrameScheduler',
    'MorphAnimator',
    # 합성
    'compose_cross_dissolve',
]
