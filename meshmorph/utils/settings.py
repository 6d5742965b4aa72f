"""
설정 파일 로드 유틸리티
settings.json 이 없으면 기본값을 사용한다.
"""
import json
import os
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple

from meshmorph.errors import SettingsError
from meshmorph.utils.logger import LOG_LEVELS, configure_logging, get_logger

# 설정 파일 경로
SETTINGS_FILE = 'settings.json'

_logger = get_logger('설정')


@dataclass(frozen=True)
class LoggingSettings:
    level: str = 'INFO'
    file_enabled: bool = False
    file_path: str = 'logs/meshmorph.log'


@dataclass(frozen=True)
class MorphSettings:
    """모핑 도구 설정값"""

    domain_size: Tuple[int, int] = (400, 400)
    max_display_size: Tuple[int, int] = (500, 500)
    animation_duration_ms: float = 3000
    frame_throttle: int = 2  # N 틱마다 한 번 렌더링
    delete_threshold: float = 20  # 도메인 상단 위로 이 거리보다 멀리 끌면 삭제
    frame_interval_ms: int = 16
    warp_overlap: float = 0.0  # 0이면 삼각형 확장 비활성화
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def _as_size(key, value):
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise SettingsError(f"'{key}' 값은 [너비, 높이] 형식이어야 합니다: {value!r}")
    width, height = value
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (width, height)):
        raise SettingsError(f"'{key}' 값은 숫자여야 합니다: {value!r}")
    if width <= 0 or height <= 0:
        raise SettingsError(f"'{key}' 값은 0보다 커야 합니다: {value!r}")
    return int(round(width)), int(round(height))


def _as_number(key, value, minimum=0.0, integer=False):
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise SettingsError(f"'{key}' 값은 숫자여야 합니다: {value!r}")
    if value < minimum:
        raise SettingsError(f"'{key}' 값은 {minimum} 이상이어야 합니다: {value!r}")
    return int(value) if integer else value


_CONVERTERS = {
    'domain_size': lambda v: _as_size('domain_size', v),
    'max_display_size': lambda v: _as_size('max_display_size', v),
    'animation_duration_ms': lambda v: _as_number('animation_duration_ms', v),
    'frame_throttle': lambda v: _as_number('frame_throttle', v, minimum=1, integer=True),
    'delete_threshold': lambda v: _as_number('delete_threshold', v),
    'frame_interval_ms': lambda v: _as_number('frame_interval_ms', v, minimum=1, integer=True),
    'warp_overlap': lambda v: _as_number('warp_overlap', v),
}


def _parse_logging(value) -> LoggingSettings:
    if not isinstance(value, dict):
        raise SettingsError(f"'logging' 섹션은 객체여야 합니다: {value!r}")
    known = {f.name for f in fields(LoggingSettings)}
    for key in value:
        if key not in known:
            _logger.warning(f"알 수 없는 로깅 설정 무시: {key}")

    level = value.get('level', LoggingSettings.level)
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise SettingsError(f"'logging.level' 값은 {', '.join(LOG_LEVELS)} 중 하나여야 합니다: {level!r}")
    file_enabled = value.get('file_enabled', LoggingSettings.file_enabled)
    if not isinstance(file_enabled, bool):
        raise SettingsError(f"'logging.file_enabled' 값은 true/false 여야 합니다: {file_enabled!r}")
    file_path = value.get('file_path', LoggingSettings.file_path)
    if not isinstance(file_path, str) or not file_path.strip():
        raise SettingsError(f"'logging.file_path' 값은 비어 있지 않은 문자열이어야 합니다: {file_path!r}")

    return LoggingSettings(level=level.upper(), file_enabled=file_enabled, file_path=file_path)


def settings_from_dict(data: dict, base: Optional[MorphSettings] = None) -> MorphSettings:
    """딕셔너리를 MorphSettings 로 변환 (없는 키는 base 값 유지)

    Raises:
        SettingsError: 값 형식이 잘못된 경우
    """
    settings = base or MorphSettings()
    if not isinstance(data, dict):
        raise SettingsError(f"설정 파일 최상위는 객체여야 합니다: {type(data).__name__}")

    updates = {}
    for key, value in data.items():
        if key == 'logging':
            updates['logging'] = _parse_logging(value)
        elif key in _CONVERTERS:
            updates[key] = _CONVERTERS[key](value)
        else:
            _logger.warning(f"알 수 없는 설정 무시: {key}")
    return replace(settings, **updates)


def load_settings(path: str = SETTINGS_FILE) -> MorphSettings:
    """설정 파일을 불러옵니다.

    파일이 없으면 기본값을 반환합니다.

    Raises:
        SettingsError: 파일 읽기 실패, JSON 파싱 실패 또는 잘못된 값
    """
    if not os.path.exists(path):
        _logger.debug(f"설정 파일 없음, 기본값 사용: {path}")
        return MorphSettings()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SettingsError(f"설정 파일 읽기 실패 ({path}): {e}") from e

    settings = settings_from_dict(data)
    _logger.info(f"설정 파일을 불러왔습니다: {path}")
    return settings


def apply_logging_settings(settings: MorphSettings):
    """설정의 logging 섹션을 로거에 적용"""
    log_settings = settings.logging
    configure_logging(
        level=log_settings.level,
        file_enabled=log_settings.file_enabled,
        file_path=log_settings.file_path,
    )
