"""
통합 로깅 시스템
모든 모핑 모듈에서 사용할 수 있는 모듈별 로거 제공
색상 출력 지원 (colorama 사용, Windows 호환)
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from colorama import init, Fore, Style

init(autoreset=True)  # Windows에서 자동 초기화

# 로그 레벨 매핑
LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# 모듈별 로거 캐싱
_loggers = {}

# 로깅 설정
_logging_config = {
    'level': 'INFO',
    'file_enabled': False,
    'file_path': 'logs/meshmorph.log',
    'max_bytes': 10 * 1024 * 1024,  # 10MB
    'backup_count': 5
}


def _get_log_format():
    """로그 포맷 반환"""
    return '%(asctime)s [%(levelname)s] [%(name)s] %(message)s'


def _get_date_format():
    """날짜 포맷 반환"""
    return '%Y-%m-%d %H:%M:%S'


def _level_of(level: str) -> int:
    return LOG_LEVELS.get(str(level).upper(), logging.INFO)


def _ensure_log_directory(log_file_path):
    """로그 파일 디렉토리가 없으면 생성"""
    log_dir = os.path.dirname(log_file_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)


def configure_logging(level='INFO', file_enabled=False, file_path='logs/meshmorph.log'):
    """로깅 설정

    이미 생성된 로거도 모두 새 설정으로 다시 구성합니다.

    Args:
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        file_enabled: 파일 로그 저장 여부
        file_path: 로그 파일 경로
    """
    _logging_config['level'] = level
    _logging_config['file_enabled'] = file_enabled
    _logging_config['file_path'] = file_path

    for logger in _loggers.values():
        _close_handlers(logger)
        _setup_handlers(logger)


def _close_handlers(logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _setup_handlers(logger):
    """로거에 콘솔/파일 핸들러 설정"""
    log_level = _level_of(_logging_config['level'])
    logger.setLevel(log_level)
    logger.propagate = False

    formatter = logging.Formatter(_get_log_format(), _get_date_format())

    # 콘솔 핸들러 (항상 추가)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # 파일 핸들러 (설정된 경우에만 추가)
    if _logging_config['file_enabled']:
        file_path = _logging_config['file_path']
        try:
            _ensure_log_directory(file_path)
            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=_logging_config['max_bytes'],
                backupCount=_logging_config['backup_count'],
                encoding='utf-8'
            )
        except OSError as e:
            # 파일 로그 실패는 콘솔 로그까지 막지 않음
            logger.warning(f"파일 핸들러 설정 실패 ({file_path}): {e}")
            return
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def get_logger(module_name: str) -> logging.Logger:
    """모듈별 로거 반환 (캐싱)

    Args:
        module_name: 모듈 이름 (예: '삼각분할', '워프', '애니메이션')

    Returns:
        logging.Logger: 설정된 로거
    """
    if module_name in _loggers:
        return _loggers[module_name]

    logger = logging.getLogger(f"meshmorph.{module_name}")
    _setup_handlers(logger)
    _loggers[module_name] = logger
    return logger


# ========== 색상 출력 함수 ==========

_LEVEL_COLORS = {
    'DEBUG': Fore.CYAN,
    'INFO': Fore.GREEN,
    'WARNING': Fore.YELLOW,
    'ERROR': Fore.RED,
    'CRITICAL': Fore.RED + Style.BRIGHT,
}


def _get_color_for_level(level: str) -> str:
    """로그 레벨에 따른 색상 코드 반환"""
    return _LEVEL_COLORS.get(level.upper(), '')


def print_colored(module_name: str, message: str, level: str = 'INFO'):
    """색상이 적용된 콘솔 출력 + 로거 기록

    Args:
        module_name: 모듈 이름
        message: 메시지
        level: 로그 레벨

    Examples:
        print_colored("세션", "이미지 로드 완료: 400x300", "INFO")
    """
    log_level = _level_of(level)
    get_logger(module_name).log(log_level, message)

    if log_level < _level_of(_logging_config['level']):
        return
    color = _get_color_for_level(level)
    stream = sys.stderr if log_level >= logging.ERROR else sys.stdout
    print(f"{color}[{module_name}] {message}{Fore.RESET}", file=stream)


def error(module_name: str, message: str, exception: Optional[Exception] = None):
    """에러 로깅 (예외가 있으면 traceback 포함)"""
    logger = get_logger(module_name)
    if exception is not None:
        logger.error(f"{message}: {exception}", exc_info=exception)
    else:
        logger.error(message)

