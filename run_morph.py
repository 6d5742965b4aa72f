#!/usr/bin/env python3
"""
MeshMorph 실행
두 이미지에 대응 포인트를 찍고 메시 기반 모핑을 재생한다.
"""
import sys

from meshmorph.errors import SettingsError
from meshmorph.utils.logger import error, print_colored
from meshmorph.utils.settings import SETTINGS_FILE, apply_logging_settings, load_settings


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    settings_path = SETTINGS_FILE
    if len(argv) > 1 and argv[0] in ("--settings", "-s"):
        settings_path = argv[1]

    try:
        settings = load_settings(settings_path)
    except SettingsError as e:
        error('실행', "설정 파일 오류", e)
        return 1
    apply_logging_settings(settings)
    print_colored('실행', f"MeshMorph 시작 (설정: {settings_path})")

    from meshmorph.gui.panel import MorphPanel
    panel = MorphPanel(settings)
    panel.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
