"""
메시 기반 두 이미지 모핑 도구

사용 흐름:
1. 두 이미지를 불러온다 (MorphSession.load_image)
2. 대응 포인트를 찍고 옮긴다 (add_point / move_point / delete_point)
3. 워프 미리보기 또는 모핑 애니메이션을 재생한다 (render_static_warp / start_morph)
"""
__version__ = "0.1.0"
