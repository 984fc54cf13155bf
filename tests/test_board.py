import math
import unittest

from catan_game.domain.board import (
    Resource,
    axial_to_pixel,
    build_standard_board,
    corner_key,
    default_tiles,
    hex_corner_offset,
    node_point,
)
from catan_game.domain.randomizer import generate_randomized_board, validate_standard_counts


class BoardGraphTests(unittest.TestCase):
    def test_standard_board_node_count(self) -> None:
        board = build_standard_board()
        self.assertEqual(len(board.tiles), 19)
        self.assertEqual(len(board.nodes), 54)

    def test_every_node_touches_one_to_three_tiles(self) -> None:
        board = generate_randomized_board(seed=14)
        for node in board.nodes.values():
            self.assertGreaterEqual(len(node.adjacent_tile_ids), 1)
            self.assertLessEqual(len(node.adjacent_tile_ids), 3)
        total_links = sum(len(node.adjacent_tile_ids) for node in board.nodes.values())
        self.assertEqual(total_links, 19 * 6)

    def test_node_adjacency_is_symmetric(self) -> None:
        board = generate_randomized_board(seed=12)
        for node_id, node in board.nodes.items():
            self.assertNotIn(node_id, node.neighbor_node_ids)
            self.assertIn(len(node.neighbor_node_ids), (2, 3))
            for neighbor_id in node.neighbor_node_ids:
                self.assertIn(node_id, board.nodes[neighbor_id].neighbor_node_ids)

    def test_tile_rings_are_six_distinct_nodes(self) -> None:
        board = build_standard_board()
        for tile in board.tiles:
            ring = board.tile_nodes[tile.id]
            self.assertEqual(len(set(ring)), 6)
            for node_id in ring:
                self.assertIn(tile.id, board.nodes[node_id].adjacent_tile_ids)

    def test_shared_corners_resolve_to_one_node(self) -> None:
        board = build_standard_board()
        keys = {}
        for tile in board.tiles:
            for corner_index, node_id in enumerate(board.tile_nodes[tile.id]):
                key = corner_key(tile.q, tile.r, corner_index)
                keys.setdefault(key, node_id)
                self.assertEqual(keys[key], node_id)
        self.assertEqual(len(keys), 54)

    def test_distance_rule_blocks_neighbor_nodes(self) -> None:
        board = generate_randomized_board(seed=13)
        first_node_id = "N1"
        neighbor_id = board.nodes[first_node_id].neighbor_node_ids[0]

        occupied = {first_node_id}
        self.assertFalse(board.is_legal_settlement(first_node_id, occupied))
        self.assertFalse(board.is_legal_settlement(neighbor_id, occupied))
        self.assertNotIn(neighbor_id, board.legal_settlement_nodes(occupied))
        self.assertNotIn(first_node_id, board.legal_settlement_nodes(occupied))
        self.assertEqual(
            len(board.legal_settlement_nodes(occupied)),
            54 - 1 - len(board.nodes[first_node_id].neighbor_node_ids),
        )

    def test_unknown_node_is_never_legal(self) -> None:
        board = build_standard_board()
        self.assertFalse(board.is_legal_settlement("N999", set()))

    def test_wrong_tile_count_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_standard_board(default_tiles()[:18])


class DefaultBoardTests(unittest.TestCase):
    def test_center_tile_is_the_desert(self) -> None:
        board = build_standard_board()
        deserts = [tile for tile in board.tiles if tile.resource is Resource.DESERT]
        self.assertEqual(len(deserts), 1)
        self.assertEqual((deserts[0].q, deserts[0].r), (0, 0))
        self.assertIsNone(deserts[0].token_number)
        self.assertEqual(board.desert_tile_id(), deserts[0].id)

    def test_default_board_uses_standard_pools(self) -> None:
        self.assertTrue(validate_standard_counts(build_standard_board()))

    def test_tiles_are_ordered_by_row_then_column(self) -> None:
        tiles = default_tiles()
        self.assertEqual([tile.id for tile in tiles], [f"T{index}" for index in range(1, 20)])
        positions = [(tile.r, tile.q) for tile in tiles]
        self.assertEqual(positions, sorted(positions))
        self.assertEqual((tiles[0].q, tiles[0].r), (0, -2))
        self.assertIs(tiles[0].resource, Resource.BRICK)
        self.assertEqual(tiles[0].token_number, 5)

    def test_no_tile_carries_a_seven(self) -> None:
        for tile in default_tiles():
            self.assertNotEqual(tile.token_number, 7)


class GeometryTests(unittest.TestCase):
    def test_node_point_matches_every_touching_tile(self) -> None:
        board = build_standard_board()
        size = 40.0
        for tile in board.tiles:
            center_x, center_y = axial_to_pixel(tile.q, tile.r, size)
            for corner_index, node_id in enumerate(board.tile_nodes[tile.id]):
                dx, dy = hex_corner_offset(size, corner_index)
                x, y = node_point(board, node_id, size)
                self.assertAlmostEqual(x, center_x + dx, places=6)
                self.assertAlmostEqual(y, center_y + dy, places=6)

    def test_axial_to_pixel_flat_top(self) -> None:
        x, y = axial_to_pixel(2, -1, 10.0)
        self.assertAlmostEqual(x, 30.0)
        self.assertAlmostEqual(y, 0.0)
        x, y = axial_to_pixel(0, 1, 10.0)
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 10.0 * math.sqrt(3))


if __name__ == "__main__":
    unittest.main()
