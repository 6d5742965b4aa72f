"""
모핑 패널
두 이미지 메시 편집기 + 모핑 결과 캔버스
"""
import tkinter as tk
from tkinter import filedialog, messagebox
from typing import Optional

from PIL import Image, ImageTk

from meshmorph.errors import MorphError
from meshmorph.gui.mesh_canvas import MeshCanvas
from meshmorph.gui.scheduler import TkFrameScheduler
from meshmorph.morphing.blend import compose_cross_dissolve
from meshmorph.session import MorphFrame, MorphSession
from meshmorph.utils.logger import error, get_logger
from meshmorph.utils.settings import MorphSettings

_logger = get_logger('모핑패널')

IMAGE_FILETYPES = [
    ("이미지 파일", "*.png *.jpg *.jpeg *.bmp *.gif *.webp"),
    ("모든 파일", "*.*"),
]


class MorphPanel(tk.Tk):
    """메인 창"""

    def __init__(self, settings: Optional[MorphSettings] = None):
        super().__init__()
        self.title("MeshMorph")

        settings = settings or MorphSettings()
        scheduler = TkFrameScheduler(self, interval_ms=settings.frame_interval_ms)
        self.session = MorphSession(settings, scheduler=scheduler)
        self._output_photo = None

        self._create_widgets()
        self.protocol("WM_DELETE_WINDOW", self.on_close)

    def _create_widgets(self):
        toolbar = tk.Frame(self)
        toolbar.pack(side=tk.TOP, fill=tk.X, padx=5, pady=5)

        tk.Button(toolbar, text="이미지 1 열기", command=lambda: self.open_image(0)).pack(side=tk.LEFT)
        tk.Button(toolbar, text="이미지 2 열기", command=lambda: self.open_image(1)).pack(side=tk.LEFT)
        tk.Button(toolbar, text="워프 미리보기", command=self.show_static_warp).pack(side=tk.LEFT, padx=(10, 0))
        tk.Button(toolbar, text="모핑 실행", command=self.start_morph).pack(side=tk.LEFT)
        tk.Button(toolbar, text="정지", command=self.session.stop_morph).pack(side=tk.LEFT)
        tk.Button(toolbar, text="초기화", command=self.session.clear).pack(side=tk.LEFT, padx=(10, 0))

        self.status_label = tk.Label(toolbar, text="", anchor=tk.W)
        self.status_label.pack(side=tk.LEFT, fill=tk.X, expand=True, padx=10)

        body = tk.Frame(self)
        body.pack(side=tk.TOP, padx=5, pady=(25, 5))  # 위쪽 여백: 포인트를 끌어올려 삭제

        self.editors = [MeshCanvas(body, self.session, slot) for slot in (0, 1)]
        for editor in self.editors:
            editor.pack(side=tk.LEFT, padx=5)

        width, height = self.session.size
        self.output_canvas = tk.Canvas(body, width=width, height=height,
                                       highlightthickness=0, background='#202020')
        self.output_canvas.pack(side=tk.LEFT, padx=5)
        self.session.subscribe(self._on_session_change)

    def _on_session_change(self, event):
        width, height = self.session.size
        self.output_canvas.config(width=width, height=height)
        count = len(self.session.mesh(0).points)
        selected = self.session.selected_index
        self.status_label.config(text=f"포인트 {count}개, 선택: {'-' if selected is None else selected}")

    def open_image(self, slot):
        path = filedialog.askopenfilename(title=f"이미지 {slot + 1} 열기", filetypes=IMAGE_FILETYPES)
        if not path:
            return
        try:
            self.session.load_image(slot, path)
        except (OSError, ValueError, MorphError) as e:
            error('모핑패널', f"이미지 로드 실패: {path}", e)
            messagebox.showerror("오류", f"이미지를 불러오지 못했습니다.\n{e}")

    def show_static_warp(self):
        try:
            buffer = self.session.render_static_warp(0)
        except MorphError as e:
            messagebox.showwarning("워프", str(e))
            return
        self._show_buffer(buffer)

    def start_morph(self):
        try:
            self.session.start_morph(self.show_frame, on_finish=lambda: _logger.info("모핑 완료"))
        except MorphError as e:
            messagebox.showwarning("모핑", str(e))

    def show_frame(self, frame: MorphFrame):
        self._show_buffer(compose_cross_dissolve(frame.first, frame.second, frame.opacity))

    def _show_buffer(self, buffer):
        self._output_photo = ImageTk.PhotoImage(Image.fromarray(buffer, 'RGBA'))
        self.output_canvas.delete("all")
        self.output_canvas.create_image(0, 0, image=self._output_photo, anchor=tk.NW)

    def on_close(self):
        self.session.stop_morph()
        self.destroy()
