import unittest

import numpy as np

from meshmorph.errors import PointIndexError
from meshmorph.morphing.triangulation import (
    DelaunayTriangulator,
    Point,
    Triangulation,
    edges_from_triangles,
    topology_matches
)


class TestTriangulation(unittest.TestCase):

    def test_corners_come_first(self):
        # Given
        mesh = Triangulation((400, 300), points=[(10, 20), (30, 40)])

        # When
        coords = [p.coord for p in mesh.effective_points()]

        # Then
        self.assertEqual(coords[:4], [(0, 0), (400, 0), (0, 300), (400, 300)])
        self.assertEqual(coords[4:], [(10, 20), (30, 40)])

    def test_empty_mesh_is_two_triangles(self):
        mesh = Triangulation((400, 400))

        triangles = mesh.triangles(as_indices=True)

        self.assertEqual(len(triangles), 2)
        self.assertEqual({i for t in triangles for i in t}, {0, 1, 2, 3})
        self.assertEqual(len(mesh.edges()), 5)

    def test_triangles_as_coordinates(self):
        mesh = Triangulation((400, 400))
        corners = {(0.0, 0.0), (400.0, 0.0), (0.0, 400.0), (400.0, 400.0)}

        for triangle in mesh.triangles():
            self.assertEqual(len(triangle), 3)
            for vertex in triangle:
                self.assertIn(vertex, corners)

    def test_center_point_fans_to_corners(self):
        # Given
        mesh = Triangulation((400, 400), points=[(200, 200)])

        # When
        triangles = mesh.triangles(as_indices=True)
        edges = mesh.edges()

        # Then: 가운데 포인트가 네 삼각형 모두에 포함된다
        self.assertEqual(len(triangles), 4)
        self.assertTrue(all(4 in t for t in triangles))
        self.assertEqual(len(edges), 8)
        for corner in range(4):
            self.assertIn((corner, 4), edges)

    def test_edges_are_unique_and_cover_all_sides(self):
        # Given
        rng = np.random.default_rng(7)
        coords = np.unique(rng.integers(1, 399, size=(30, 2)), axis=0)
        mesh = Triangulation((400, 400), points=[tuple(c) for c in coords])

        # When
        triangles = mesh.triangles(as_indices=True)
        edges = mesh.edges()

        # Then
        self.assertEqual(len(edges), len(set(edges)))
        for a, b in edges:
            self.assertLess(a, b)
        sides = {tuple(sorted(pair)) for a, b, c in triangles for pair in ((a, b), (b, c), (c, a))}
        self.assertEqual(set(edges), sides)
        # 볼록 껍질 꼭짓점이 네 모서리뿐이면 E = 3V - 7
        vertex_count = len(mesh.effective_points())
        self.assertEqual(len(edges), 3 * vertex_count - 7)

    def test_edges_from_triangles_keeps_first_appearance_order(self):
        edges = edges_from_triangles([(2, 0, 1), (1, 3, 2)])

        self.assertEqual(edges, [(0, 2), (0, 1), (1, 2), (1, 3), (2, 3)])

    def test_add_point_rounds_half_up(self):
        mesh = Triangulation((400, 400))

        index = mesh.add_point((10.4, 10.5))
        mesh.add_point((2.5, -2.5))

        self.assertEqual(index, 0)
        self.assertEqual(mesh.points[0].coord, (10, 11))
        self.assertEqual(mesh.points[1].coord, (3, -2))

    def test_remove_point_shifts_later_indices(self):
        mesh = Triangulation((400, 400), points=[(10, 10), (20, 20), (30, 30)])

        removed = mesh.remove_point_at(1)

        self.assertEqual(removed.coord, (20, 20))
        self.assertEqual([p.coord for p in mesh.points], [(10, 10), (30, 30)])

    def test_invalid_indices_raise(self):
        mesh = Triangulation((400, 400), points=[(10, 10)])

        for index in (-1, 1, True, 0.0):
            with self.assertRaises(PointIndexError):
                mesh.remove_point_at(index)
        with self.assertRaises(IndexError):
            mesh.move_point(5, (0, 0))
        self.assertEqual(len(mesh), 1)

    def test_marked_point_excluded_but_kept(self):
        mesh = Triangulation((400, 400), points=[(100, 100), (200, 200)])

        mesh.mark_for_deletion(0)

        self.assertEqual(len(mesh.points), 2)
        self.assertEqual(len(mesh.effective_points()), 5)
        self.assertEqual(mesh.effective_coords()[4].tolist(), [200.0, 200.0])
        self.assertEqual(len(mesh.triangles()), 4)

    def test_move_point_clamps_to_domain(self):
        mesh = Triangulation((400, 400), points=[(100, 100)])

        marked = mesh.move_point(0, (450, -10))

        self.assertFalse(marked)
        self.assertEqual(mesh.points[0].coord, (400, 0))

    def test_move_point_delete_threshold(self):
        mesh = Triangulation((400, 400), points=[(100, 100)])

        # 임계값까지는 클램핑
        self.assertFalse(mesh.move_point(0, (50, -19)))
        self.assertEqual(mesh.points[0].coord, (50, 0))
        self.assertFalse(mesh.move_point(0, (50, -20)))
        self.assertEqual(mesh.points[0].coord, (50, 0))

        # 임계값을 넘으면 좌표 그대로 삭제 표시
        self.assertTrue(mesh.move_point(0, (50, -21)))
        self.assertEqual(mesh.points[0].coord, (50, -21))
        self.assertTrue(mesh.points[0].marked_for_deletion)

        # 다시 안으로 끌어오면 표시 해제
        self.assertFalse(mesh.move_point(0, (60, 60)))
        self.assertFalse(mesh.points[0].marked_for_deletion)

    def test_resize_keeps_points(self):
        mesh = Triangulation((400, 400), points=[(350, 350)])

        mesh.resize(200, 100)

        self.assertEqual(mesh.size, (200, 100))
        self.assertEqual(mesh.points[0].coord, (350, 350))
        self.assertEqual(mesh.corners()[3].coord, (200, 100))
        with self.assertRaises(ValueError):
            mesh.resize(0, 100)

    def test_clear(self):
        mesh = Triangulation((400, 400), points=[(1, 1), (2, 2)])

        mesh.clear()

        self.assertEqual(len(mesh), 0)
        self.assertEqual(len(mesh.effective_points()), 4)

    def test_custom_triangulator(self):
        calls = []

        def fixed(points):
            calls.append(len(points))
            return np.array([[0, 1, 2], [1, 3, 2]])

        mesh = Triangulation((10, 10), triangulator=fixed)

        self.assertEqual(mesh.triangles(as_indices=True), [(0, 1, 2), (1, 3, 2)])
        self.assertEqual(calls, [4])


class TestDelaunayTriangulator(unittest.TestCase):

    def test_cache_returns_copies(self):
        triangulate = DelaunayTriangulator(cache_size=2)
        points = np.array([[0, 0], [10, 0], [0, 10], [10, 10], [3, 4]], dtype=np.float64)

        first = triangulate(points)
        first[0, 0] = 99
        second = triangulate(points)

        self.assertEqual(len(triangulate._cache), 1)
        self.assertNotEqual(second[0, 0], 99)

    def test_cache_size_is_bounded(self):
        triangulate = DelaunayTriangulator(cache_size=2)
        for offset in range(4):
            triangulate(np.array([[0, 0], [10, 0], [0, 10], [10, 10], [3 + offset, 4]], dtype=np.float64))

        self.assertEqual(len(triangulate._cache), 2)
        triangulate.clear_cache()
        self.assertEqual(len(triangulate._cache), 0)


class TestTopology(unittest.TestCase):

    def test_same_layout_matches(self):
        first = Triangulation((400, 400), points=[(100, 120), (300, 250)])
        second = Triangulation((400, 400), points=[(100, 120), (300, 250)])

        self.assertTrue(topology_matches(first, second))

    def test_same_count_can_produce_different_topology(self):
        # Given: 포인트 수는 같지만 위치가 달라 Delaunay 결과가 달라지는 배치
        first = Triangulation((400, 400), points=[(50, 50), (350, 350)])
        second = Triangulation((400, 400), points=[(350, 50), (50, 350)])

        # When
        first_set = {tuple(sorted(t)) for t in first.triangles(as_indices=True)}
        second_set = {tuple(sorted(t)) for t in second.triangles(as_indices=True)}

        # Then
        self.assertIn((0, 2, 4), first_set)
        self.assertNotIn((0, 2, 4), second_set)
        self.assertFalse(topology_matches(first, second))

    def test_different_counts_do_not_match(self):
        first = Triangulation((400, 400), points=[(50, 50)])
        second = Triangulation((400, 400))

        self.assertFalse(topology_matches(first, second))


class TestPoint(unittest.TestCase):

    def test_create_rounds(self):
        point = Point.create((1.49, 1.5))

        self.assertEqual(point.coord, (1, 2))
        self.assertFalse(point.marked_for_deletion)


if __name__ == '__main__':
    unittest.main()
