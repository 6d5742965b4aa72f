import unittest

from PIL import Image

from meshmorph.errors import CorrespondenceError, ImageNotReadyError, PointIndexError
from meshmorph.session import ChangeKind, MorphSession
from meshmorph.utils.settings import MorphSettings

from morph_fakes import FakeClock, FakeScheduler, run_ticks


def _coords(mesh):
    return [p.coord for p in mesh.points]


class TestSessionEditing(unittest.TestCase):

    def setUp(self):
        self.session = MorphSession()
        self.events = []
        self.session.subscribe(self.events.append)

    def test_add_point_creates_twin_and_selects(self):
        # When
        event = self.session.add_point(0, (10, 10))

        # Then
        self.assertEqual(_coords(self.session.mesh(0)), [(10, 10)])
        self.assertEqual(_coords(self.session.mesh(1)), [(10, 10)])
        self.assertEqual(self.session.selected_index, 0)
        self.assertEqual(event.kind, ChangeKind.ADDED)
        self.assertEqual(self.events, [event])

    def test_add_to_second_slot(self):
        self.session.add_point(0, (10, 10))
        self.session.add_point(1, (50, 60))

        self.assertEqual(_coords(self.session.mesh(0)), [(10, 10), (50, 60)])
        self.assertEqual(self.session.selected_index, 1)

    def test_delete_point_removes_from_both(self):
        # Given
        for coord in [(1, 1), (2, 2), (3, 3)]:
            self.session.add_point(0, coord)
        self.session.move_point(1, 0, (4, 4))
        self.session.move_point(1, 1, (5, 5))
        self.session.move_point(1, 2, (6, 6))

        # When
        self.session.delete_point(1)

        # Then
        self.assertEqual(_coords(self.session.mesh(0)), [(1, 1), (3, 3)])
        self.assertEqual(_coords(self.session.mesh(1)), [(4, 4), (6, 6)])

    def test_delete_adjusts_selection(self):
        for coord in [(1, 1), (2, 2), (3, 3)]:
            self.session.add_point(0, coord)

        self.session.select(2)
        self.session.delete_point(0)
        self.assertEqual(self.session.selected_index, 1)

        self.session.delete_point(1)
        self.assertIsNone(self.session.selected_index)

    def test_invalid_index_raises(self):
        self.session.add_point(0, (1, 1))

        with self.assertRaises(PointIndexError):
            self.session.delete_point(3)
        with self.assertRaises(PointIndexError):
            self.session.select(-1)
        with self.assertRaises(IndexError):
            self.session.add_point(2, (1, 1))
        self.assertEqual(len(self.session.mesh(1).points), 1)

    def test_move_point_clamps(self):
        self.session.add_point(0, (100, 100))

        event = self.session.move_point(0, 0, (450, -10))

        self.assertEqual(event.kind, ChangeKind.MOVED)
        self.assertEqual(self.session.mesh(0).points[0].coord, (400, 0))
        self.assertEqual(self.session.mesh(1).points[0].coord, (100, 100))

    def test_drag_above_domain_deletes_on_release(self):
        # Given
        self.session.add_point(0, (100, 100))
        self.session.add_point(0, (200, 200))
        self.session.begin_drag(1, 0)

        # When
        self.session.move_point(1, 0, (100, -30))
        event = self.session.end_drag(1, 0)

        # Then
        self.assertEqual(event.kind, ChangeKind.DELETED)
        self.assertEqual(_coords(self.session.mesh(0)), [(200, 200)])
        self.assertEqual(_coords(self.session.mesh(1)), [(200, 200)])

    def test_release_inside_domain_keeps_point(self):
        self.session.add_point(0, (100, 100))

        self.session.move_point(0, 0, (100, -15))

        self.assertIsNone(self.session.end_drag(0, 0))
        self.assertEqual(len(self.session.mesh(0).points), 1)

    def test_clear(self):
        self.session.add_point(0, (1, 1))

        event = self.session.clear()

        self.assertEqual(event.kind, ChangeKind.CLEARED)
        self.assertEqual(len(self.session.mesh(0).points), 0)
        self.assertEqual(len(self.session.mesh(1).points), 0)
        self.assertIsNone(self.session.selected_index)

    def test_unsubscribe(self):
        unsubscribe = self.session.subscribe(lambda e: self.fail("should not be called"))
        unsubscribe()
        unsubscribe()

        self.session.select(None)

        self.assertEqual(self.events[-1].kind, ChangeKind.SELECTED)


class TestSessionImages(unittest.TestCase):

    def test_first_image_decides_domain(self):
        # Given
        session = MorphSession(MorphSettings(max_display_size=(500, 500)))

        # When
        session.load_image(0, Image.new('RGB', (800, 400), 'red'))
        self.assertEqual(session.size, (500, 250))
        session.load_image(1, Image.new('RGB', (100, 300), 'blue'))

        # Then
        self.assertEqual(session.size, (500, 250))
        self.assertEqual(session.mesh(1).size, (500, 250))
        self.assertEqual(session.source_buffer(1).shape, (250, 500, 4))

    def test_small_image_is_not_upscaled(self):
        session = MorphSession()

        session.load_image(1, Image.new('RGB', (200, 100)))

        self.assertEqual(session.size, (200, 100))

    def test_source_buffer_requires_image(self):
        session = MorphSession()

        with self.assertRaises(ImageNotReadyError):
            session.source_buffer(0)
        with self.assertRaises(IndexError):
            session.load_image(5, Image.new('RGB', (10, 10)))


class TestSessionRendering(unittest.TestCase):

    def setUp(self):
        self.scheduler = FakeScheduler()
        self.clock = FakeClock()
        settings = MorphSettings(max_display_size=(40, 40), animation_duration_ms=400)
        self.session = MorphSession(settings, scheduler=self.scheduler, clock=self.clock)

    def _load_images(self):
        self.session.load_image(0, Image.new('RGB', (40, 40), (255, 0, 0)))
        self.session.load_image(1, Image.new('RGB', (40, 40), (0, 0, 255)))

    def test_render_frame(self):
        # Given
        self._load_images()
        self.session.add_point(0, (20, 20))
        self.session.move_point(1, 0, (25, 15))

        # When
        frame = self.session.render_frame(0.5)

        # Then
        self.assertEqual(frame.opacity, 0.5)
        self.assertEqual(frame.first[10, 10].tolist(), [255, 0, 0, 255])
        self.assertEqual(frame.second[10, 10].tolist(), [0, 0, 255, 255])
        self.assertEqual(frame.first_stats.skipped, 0)
        self.assertIs(self.session.last_frame, frame)

    def test_static_warp(self):
        self._load_images()

        buffer = self.session.render_static_warp(1)

        self.assertEqual(buffer.shape, (40, 40, 4))
        self.assertEqual(buffer[20, 20].tolist(), [0, 0, 255, 255])

    def test_start_morph_requires_images(self):
        with self.assertRaises(ImageNotReadyError):
            self.session.start_morph(lambda frame: None)

    def test_start_morph_requires_balanced_meshes(self):
        self._load_images()
        self.session.mesh(0).add_point((5, 5))

        with self.assertRaises(CorrespondenceError):
            self.session.start_morph(lambda frame: None)
        self.assertFalse(self.session.is_morphing)

    def test_start_morph_without_scheduler(self):
        with self.assertRaises(RuntimeError):
            MorphSession().start_morph(lambda frame: None)

    def test_morph_runs_to_completion(self):
        # Given
        self._load_images()
        self.session.add_point(0, (10, 30))
        frames = []
        finished = []

        # When
        self.session.start_morph(frames.append, on_finish=lambda: finished.append(True))
        self.assertTrue(self.session.is_morphing)
        run_ticks(self.scheduler, self.clock, 4)

        # Then
        self.assertEqual([f.t for f in frames], [0.5, 1.0])
        self.assertEqual(frames[-1].opacity, 1.0)
        self.assertEqual(finished, [True])
        self.assertFalse(self.session.is_morphing)

    def test_editing_stops_morph(self):
        self._load_images()
        self.session.start_morph(lambda frame: None)

        self.session.select(None)

        self.assertFalse(self.session.is_morphing)
        self.assertEqual(self.scheduler.pending, 0)


if __name__ == '__main__':
    unittest.main()
