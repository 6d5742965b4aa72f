"""
메시 편집 캔버스
이미지 위에 메시 엣지/포인트를 그리고, 포인터 이벤트를 세션의 편집 동작으로 변환
"""
import tkinter as tk

import numpy as np
from PIL import Image, ImageTk

from meshmorph.errors import MorphError
from meshmorph.session import ChangeKind, MorphSession
from meshmorph.utils.logger import error

POINT_RADIUS = 10

EDGE_COLOR = '#ffffff'
POINT_COLOR = '#00c0ff'
SELECTED_COLOR = '#ff3060'
DELETING_COLOR = '#808080'


class MeshCanvas(tk.Canvas):
    """한 슬롯의 이미지 + 메시 오버레이"""

    def __init__(self, parent, session: MorphSession, slot: int, **kwargs):
        width, height = session.size
        super().__init__(parent, width=width, height=height, highlightthickness=0,
                         background='#202020', **kwargs)
        self.session = session
        self.slot = slot
        self._photo = None
        self._dragged_index = None

        self.bind("<Button-1>", self.on_press)
        self.bind("<B1-Motion>", self.on_drag)
        self.bind("<ButtonRelease-1>", self.on_release)
        session.subscribe(self.on_session_change)

    # ========== 그리기 ==========

    def on_session_change(self, event):
        if event.kind in (ChangeKind.RESIZED, ChangeKind.IMAGE_LOADED):
            width, height = self.session.size
            self.config(width=width, height=height)
        self.redraw()

    def redraw(self):
        self.delete("all")
        self._draw_image()
        self._draw_mesh()

    def _draw_image(self):
        if not self.session.images[self.slot].is_loaded:
            self._photo = None
            return
        buffer = self.session.source_buffer(self.slot)
        self._photo = ImageTk.PhotoImage(Image.fromarray(buffer, 'RGBA'))
        self.create_image(0, 0, image=self._photo, anchor=tk.NW)

    def _draw_mesh(self):
        mesh = self.session.mesh(self.slot)
        coords = mesh.effective_coords()
        for a, b in mesh.edges():
            (x1, y1), (x2, y2) = coords[a], coords[b]
            self.create_line(x1, y1, x2, y2, fill=EDGE_COLOR, tags=("edge",))

        for i, point in enumerate(mesh.points):
            if point.marked_for_deletion:
                color = DELETING_COLOR
            elif i == self.session.selected_index:
                color = SELECTED_COLOR
            else:
                color = POINT_COLOR
            x, y = point.coord
            self.create_oval(x - POINT_RADIUS, y - POINT_RADIUS, x + POINT_RADIUS, y + POINT_RADIUS,
                             outline=color, width=2, tags=("point",))

    # ========== 포인터 이벤트 ==========

    def find_point(self, x, y):
        """(x, y) 에서 POINT_RADIUS 안의 가장 가까운 포인트 인덱스"""
        points = self.session.mesh(self.slot).points
        if not points:
            return None
        coords = np.array([p.coord for p in points], dtype=np.float64)
        distances = np.hypot(coords[:, 0] - x, coords[:, 1] - y)
        nearest = int(np.argmin(distances))
        if distances[nearest] <= POINT_RADIUS:
            return nearest
        return None

    def on_press(self, event):
        index = self.find_point(event.x, event.y)
        try:
            if index is None:
                self.session.add_point(self.slot, (event.x, event.y))
            else:
                self._dragged_index = index
                self.session.begin_drag(self.slot, index)
        except MorphError as e:
            error('메시편집', "포인트 편집 실패", e)

    def on_drag(self, event):
        if self._dragged_index is None:
            return
        try:
            self.session.move_point(self.slot, self._dragged_index, (event.x, event.y))
        except MorphError as e:
            error('메시편집', "포인트 이동 실패", e)
            self._dragged_index = None

    def on_release(self, event):
        index = self._dragged_index
        self._dragged_index = None
        if index is None:
            return
        try:
            self.session.end_drag(self.slot, index)
        except MorphError as e:
            error('메시편집', "드래그 종료 처리 실패", e)
