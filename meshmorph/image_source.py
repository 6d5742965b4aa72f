"""
이미지 로드 및 캔버스 크기 맞춤

이미지 원본 크기를 보관하고, 최대 바운딩 박스 안에 비율을 유지해 맞춘
크기(축소만, 확대 없음)로 RGBA 캔버스 버퍼를 만든다.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

from meshmorph.errors import ImageNotReadyError
from meshmorph.utils.logger import get_logger

_logger = get_logger('이미지')


@dataclass(frozen=True)
class ImageInfo:
    width: int
    height: int
    aspect: float


def fit_within(width: float, height: float, max_width: float, max_height: float) -> Tuple[float, float]:
    """비율을 유지하며 (max_width, max_height) 안에 맞춘 크기 (축소만)"""
    shrinkage = min(max_width / width, max_height / height)
    if shrinkage < 1:
        return (width * shrinkage, height * shrinkage)
    return (width, height)


class ImageSource:
    """한 슬롯의 이미지"""

    def __init__(self, name: str = ''):
        self.name = name
        self.image: Optional[Image.Image] = None
        self.info: Optional[ImageInfo] = None
        self.path: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self.info is not None

    def load(self, src: Union[str, Image.Image]) -> ImageInfo:
        """파일 경로 또는 PIL 이미지를 불러와 RGBA 로 보관

        Raises:
            ValueError: 크기가 0인 이미지
        """
        if isinstance(src, Image.Image):
            image = src.convert('RGBA')
            self.path = None
        else:
            with Image.open(src) as opened:
                image = opened.convert('RGBA')
            self.path = str(src)

        width, height = image.size
        if width <= 0 or height <= 0:
            raise ValueError(f"이미지 크기가 유효하지 않습니다: {width}x{height}")

        self.image = image
        self.info = ImageInfo(width=width, height=height, aspect=width / height)
        _logger.info(f"이미지 로드 완료 [{self.name}]: {width}x{height}")
        return self.info

    def clamp_size(self, max_width: float, max_height: float) -> Tuple[float, float]:
        """최대 바운딩 박스 안에 맞춘 크기

        Raises:
            ImageNotReadyError: 아직 이미지가 로드되지 않은 경우
        """
        if self.info is None:
            raise ImageNotReadyError(f"이미지 크기 정보가 아직 없습니다 ({self.name or self.path})")
        return fit_within(self.info.width, self.info.height, max_width, max_height)

    def render(self, canvas_size: Tuple[int, int]) -> np.ndarray:
        """캔버스 크기 RGBA 버퍼에 이미지를 맞춰 가운데 배치

        남는 영역은 투명(0)으로 채운다.

        Returns:
            np.ndarray: (canvas_h, canvas_w, 4) uint8
        """
        canvas_width, canvas_height = (int(v) for v in canvas_size)
        img_width, img_height = self.clamp_size(canvas_width, canvas_height)
        img_width = max(int(round(img_width)), 1)
        img_height = max(int(round(img_height)), 1)

        pad_x = (canvas_width - img_width) // 2
        pad_y = (canvas_height - img_height) // 2

        resized = self.image
        if resized.size != (img_width, img_height):
            resized = resized.resize((img_width, img_height), Image.BILINEAR)

        canvas = Image.new('RGBA', (canvas_width, canvas_height), (0, 0, 0, 0))
        canvas.paste(resized, (pad_x, pad_y))
        return np.array(canvas, dtype=np.uint8)
