"""
모핑 엔진 예외 정의

- 퇴화 삼각형은 워프 렌더러 내부에서 흡수된다 (건너뛰고 계속).
- 나머지는 호출자에게 전파되어 애플리케이션이 사용자에게 표시한다.
"""


class MorphError(Exception):
    """모핑 엔진 예외의 기본 클래스"""


class PointIndexError(MorphError, IndexError):
    """존재하지 않는 포인트 인덱스로 삭제/이동/선택을 시도한 경우"""

    def __init__(self, index, count):
        super().__init__(f"포인트 인덱스가 범위를 벗어났습니다: {index} (포인트 수: {count})")
        self.index = index
        self.count = count


class CorrespondenceError(MorphError):
    """두 메시의 포인트 수가 다른 상태로 모핑을 시도한 경우"""

    def __init__(self, first_count, second_count):
        super().__init__(f"두 메시의 포인트 수가 다릅니다: {first_count} != {second_count}")
        self.first_count = first_count
        self.second_count = second_count


class DegenerateTriangleError(MorphError, ValueError):
    """넓이가 0인 (세 꼭짓점이 한 직선 위에 있는) 삼각형"""


class ImageNotReadyError(MorphError):
    """이미지 크기 정보가 준비되기 전에 크기 계산/렌더링을 시도한 경우"""


class SettingsError(MorphError, ValueError):
    """설정 파일 값이 유효하지 않은 경우"""
