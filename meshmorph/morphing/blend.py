"""
크로스 디졸브 합성

두 번째 버퍼를 opacity 만큼 불투명하게 첫 번째 버퍼 위에 알파 합성한다.
"""
import numpy as np


def compose_cross_dissolve(first: np.ndarray, second: np.ndarray, opacity: float) -> np.ndarray:
    """RGBA 버퍼 두 장을 합성 (second over first)

    Args:
        first: 아래 레이어 RGBA uint8 (H, W, 4)
        second: 위 레이어 RGBA uint8 (H, W, 4)
        opacity: 위 레이어 불투명도 (0.0 ~ 1.0)

    Returns:
        np.ndarray: 합성된 RGBA uint8 (H, W, 4)
    """
    if first.shape != second.shape:
        raise ValueError(f"버퍼 크기가 다릅니다: {first.shape} != {second.shape}")
    if first.ndim != 3 or first.shape[2] != 4:
        raise ValueError(f"RGBA 버퍼가 필요합니다: shape={first.shape}")

    opacity = float(np.clip(opacity, 0.0, 1.0))
    bottom = first.astype(np.float32) / 255.0
    top = second.astype(np.float32) / 255.0

    top_alpha = top[..., 3:4] * opacity
    bottom_alpha = bottom[..., 3:4]
    out_alpha = top_alpha + bottom_alpha * (1.0 - top_alpha)

    premultiplied = top[..., :3] * top_alpha + bottom[..., :3] * bottom_alpha * (1.0 - top_alpha)
    safe_alpha = np.where(out_alpha > 0, out_alpha, 1.0)
    out_rgb = np.where(out_alpha > 0, premultiplied / safe_alpha, 0.0)

    result = np.concatenate([out_rgb, out_alpha], axis=2)
    return np.clip(np.round(result * 255.0), 0, 255).astype(np.uint8)
