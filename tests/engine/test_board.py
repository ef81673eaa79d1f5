"""Tests for the Board mechanics."""

import random
from itertools import combinations

import pytest

from seabattle.engine.board import (
    MISSED,
    NOT_SHOT,
    SHIP_HIT,
    SHIP_NOT_HIT,
    AttackOutcome,
    Board,
    CellKind,
    snapshot_ships,
)
from seabattle.engine.ship import Coordinate, Orientation
from seabattle.errors import InvalidPlacementError

FLEET = [5, 4, 3, 3, 2]


def _snapshot(board: Board):
    return board.derived_state(), snapshot_ships(board.ships)


def _chebyshev_gap(first, second) -> int:
    return min(
        max(abs(a.row - b.row), abs(a.col - b.col))
        for a in first.coordinates()
        for b in second.coordinates()
    )


def test_new_board_is_untouched() -> None:
    board = Board(4)
    state = board.derived_state()
    assert len(state.not_shot) == 16
    assert state.ship_hit == state.ship_not_hit == state.missed == ()
    assert board.ships == []
    assert board.cell_at((2, 2)).kind is CellKind.EMPTY


@pytest.mark.parametrize("length", [1, 2, 4, 5])
def test_placed_ship_appears_as_unhit_parts(length: int) -> None:
    board = Board()
    board.place_ship(length, Coordinate(2, 1), Orientation.HORIZONTAL)
    state = board.derived_state()
    assert len(state.ship_not_hit) == length
    assert len(state.not_shot) == 100 - length


def test_placement_marks_cells_with_ship_id_and_part() -> None:
    board = Board()
    ship = board.place_ship(3, (1, 1), Orientation.VERTICAL)
    for part, coord in enumerate(ship.coordinates()):
        cell = board.cell_at(coord)
        assert cell.kind is CellKind.OCCUPIED
        assert cell.part == part
        assert board.ship_at(coord) is ship


def test_ship_placement_rejects_overlap_and_bounds() -> None:
    board = Board()
    board.place_ship(3, Coordinate(0, 0), Orientation.HORIZONTAL)

    with pytest.raises(InvalidPlacementError):
        board.place_ship(2, Coordinate(0, 1), Orientation.VERTICAL)

    with pytest.raises(InvalidPlacementError):
        board.place_ship(2, Coordinate(9, 9), Orientation.HORIZONTAL)

    with pytest.raises(InvalidPlacementError):
        board.place_ship(4, Coordinate(8, 5), Orientation.VERTICAL)

    with pytest.raises(InvalidPlacementError):
        board.place_ship(0, Coordinate(5, 5), Orientation.VERTICAL)

    assert len(board.ships) == 1


def test_ship_placement_respects_adjacency_rule() -> None:
    board = Board()
    board.place_ship(3, Coordinate(3, 3), Orientation.VERTICAL)
    before = _snapshot(board)

    with pytest.raises(InvalidPlacementError):
        board.place_ship(2, Coordinate(2, 4), Orientation.HORIZONTAL)
    with pytest.raises(InvalidPlacementError):
        board.place_ship(2, Coordinate(6, 2), Orientation.HORIZONTAL)

    assert _snapshot(board) == before
    board.place_ship(2, Coordinate(7, 3), Orientation.HORIZONTAL)
    assert len(board.ships) == 2


def test_placement_at_board_edges_is_allowed() -> None:
    board = Board()
    board.place_ship(5, Coordinate(0, 0), Orientation.HORIZONTAL)
    board.place_ship(5, Coordinate(9, 5), Orientation.HORIZONTAL)
    board.place_ship(3, Coordinate(2, 9), Orientation.VERTICAL)
    assert len(board.ships) == 3


def test_exhaustive_placement_never_creates_touching_ships() -> None:
    rng = random.Random(7)
    board = Board(8)
    for _ in range(200):
        length = rng.randint(1, 4)
        origin = Coordinate(rng.randrange(8), rng.randrange(8))
        try:
            board.place_ship(length, origin, rng.choice(list(Orientation)))
        except InvalidPlacementError:
            continue
    assert board.ships
    for first, second in combinations(board.ships, 2):
        assert _chebyshev_gap(first, second) >= 2


def test_remove_ship_returns_descriptor_and_clears_cells() -> None:
    board = Board()
    board.place_ship(3, Coordinate(0, 2), Orientation.HORIZONTAL)
    removed = board.remove_ship(Coordinate(0, 3))
    assert removed is not None
    assert removed.length == 3
    assert removed.origin == Coordinate(0, 2)
    assert removed.orientation is Orientation.HORIZONTAL
    assert board.ships == []
    assert len(board.derived_state().not_shot) == 100


def test_remove_ship_on_empty_cell_is_noop() -> None:
    board = Board()
    assert board.remove_ship(Coordinate(0, 0)) is None
    assert board.remove_ship(Coordinate(42, 0)) is None


def test_rotate_ship_success() -> None:
    board = Board()
    board.place_ship(3, Coordinate(4, 4), Orientation.HORIZONTAL)
    assert board.rotate_ship(Coordinate(4, 6)) is True
    ship = board.ship_at(Coordinate(4, 4))
    assert ship is not None
    assert ship.orientation is Orientation.VERTICAL
    assert ship.coordinates() == [Coordinate(4, 4), Coordinate(5, 4), Coordinate(6, 4)]
    assert board.cell_at(Coordinate(4, 6)).kind is CellKind.EMPTY


def test_rotate_ship_failure_leaves_board_unchanged() -> None:
    board = Board()
    board.place_ship(3, Coordinate(4, 4), Orientation.VERTICAL)
    board.place_ship(3, Coordinate(4, 6), Orientation.VERTICAL)
    before = _snapshot(board)

    assert board.rotate_ship(Coordinate(4, 4)) is False
    assert _snapshot(board) == before


def test_rotate_ship_off_board_fails() -> None:
    board = Board()
    board.place_ship(3, Coordinate(9, 0), Orientation.HORIZONTAL)
    before = _snapshot(board)
    assert board.rotate_ship(Coordinate(9, 1)) is False
    assert _snapshot(board) == before


def test_move_ship_success() -> None:
    board = Board()
    board.place_ship(3, Coordinate(0, 0), Orientation.HORIZONTAL)
    assert board.move_ship(Coordinate(0, 1), Coordinate(2, 2)) is True
    state = board.derived_state()
    assert state.ship_not_hit == (Coordinate(2, 2), Coordinate(2, 3), Coordinate(2, 4))


def test_move_ship_may_overlap_its_own_footprint() -> None:
    board = Board()
    board.place_ship(3, Coordinate(0, 0), Orientation.HORIZONTAL)
    assert board.move_ship((0, 0), (0, 1)) is True
    assert board.derived_state().ship_not_hit == (Coordinate(0, 1), Coordinate(0, 2), Coordinate(0, 3))


def test_move_ship_failure_leaves_board_unchanged() -> None:
    board = Board()
    board.place_ship(3, Coordinate(0, 0), Orientation.HORIZONTAL)
    board.place_ship(2, Coordinate(5, 5), Orientation.VERTICAL)
    before = _snapshot(board)

    assert board.move_ship(Coordinate(0, 0), Coordinate(0, 8)) is False
    assert board.move_ship(Coordinate(0, 0), Coordinate(4, 4)) is False
    assert board.move_ship(Coordinate(3, 3), Coordinate(7, 7)) is False
    assert _snapshot(board) == before


def test_failed_relocation_keeps_the_same_ship_and_hits() -> None:
    board = Board()
    ship = board.place_ship(3, Coordinate(0, 0), Orientation.HORIZONTAL)
    board.receive_attack(Coordinate(0, 1))
    assert board.move_ship(Coordinate(0, 0), Coordinate(0, 9)) is False
    assert board.ship_at(Coordinate(0, 0)) is ship
    assert ship.hits == [False, True, False]


def test_receive_attack_end_to_end_sink() -> None:
    board = Board(10)
    ship = board.place_ship(2, Coordinate(0, 0), Orientation.HORIZONTAL)

    assert board.receive_attack(Coordinate(0, 0)) is True
    assert ship.hits == [True, False]
    assert not board.all_sunk()

    assert board.receive_attack(Coordinate(0, 1)) is True
    assert ship.is_sunk()
    assert board.all_sunk()
    missed = set(board.derived_state().missed)
    assert {Coordinate(1, 0), Coordinate(1, 1), Coordinate(1, 2), Coordinate(0, 2)} == missed


def test_receive_attack_twice_is_rejected_without_changes() -> None:
    board = Board()
    board.place_ship(3, Coordinate(0, 2), Orientation.HORIZONTAL)

    for coord in (Coordinate(0, 2), Coordinate(5, 5)):
        assert board.receive_attack(coord) is True
        before = _snapshot(board)
        assert board.receive_attack(coord) is False
        assert _snapshot(board) == before


def test_receive_attack_out_of_bounds() -> None:
    board = Board()
    before = _snapshot(board)
    assert board.receive_attack(Coordinate(10, 0)) is False
    assert board.receive_attack((-1, 3)) is False
    assert _snapshot(board) == before


def test_resolve_attack_reports_outcomes() -> None:
    board = Board()
    board.place_ship(2, Coordinate(5, 5), Orientation.VERTICAL)
    assert board.resolve_attack(Coordinate(0, 0)) is AttackOutcome.MISS
    assert board.resolve_attack(Coordinate(5, 5)) is AttackOutcome.HIT
    assert board.resolve_attack(Coordinate(5, 5)) is AttackOutcome.INVALID
    assert board.resolve_attack(Coordinate(6, 5)) is AttackOutcome.SUNK


def test_sinking_marks_ring_of_misses_only_on_empty_cells() -> None:
    board = Board()
    board.place_ship(3, Coordinate(4, 4), Orientation.HORIZONTAL)
    board.place_ship(2, Coordinate(6, 4), Orientation.HORIZONTAL)
    board.receive_attack(Coordinate(5, 4))

    for col in (4, 5, 6):
        board.receive_attack(Coordinate(4, col))

    state = board.derived_state()
    expected_ring = {
        Coordinate(row, col)
        for row in (3, 4, 5)
        for col in range(3, 8)
        if not (row == 4 and 4 <= col <= 6)
    }
    assert set(state.missed) == expected_ring
    assert set(state.ship_not_hit) == {Coordinate(6, 4), Coordinate(6, 5)}
    assert not board.all_sunk()


def test_sinking_in_corner_stays_in_bounds() -> None:
    board = Board()
    board.place_ship(1, Coordinate(9, 9), Orientation.VERTICAL)
    assert board.resolve_attack(Coordinate(9, 9)) is AttackOutcome.SUNK
    assert set(board.derived_state().missed) == {
        Coordinate(8, 8),
        Coordinate(8, 9),
        Coordinate(9, 8),
    }


def test_ring_cells_cannot_be_attacked_again() -> None:
    board = Board()
    board.place_ship(1, Coordinate(0, 0), Orientation.HORIZONTAL)
    board.receive_attack(Coordinate(0, 0))
    assert board.receive_attack(Coordinate(1, 1)) is False


@pytest.mark.parametrize("ship_count", [0, 1, 3])
def test_all_sunk_tracks_every_ship(ship_count: int) -> None:
    board = Board()
    ships = [
        board.place_ship(2, Coordinate(row * 2, 0), Orientation.HORIZONTAL)
        for row in range(ship_count)
    ]
    assert board.all_sunk() is (ship_count == 0)
    for index, ship in enumerate(ships):
        for coord in ship.coordinates():
            board.receive_attack(coord)
        assert board.all_sunk() is (index == len(ships) - 1)
    assert board.all_sunk() is all(ship.is_sunk() for ship in board.ships)


def test_derived_state_partitions_the_grid() -> None:
    board = Board(6)
    board.place_ship(3, Coordinate(0, 0), Orientation.VERTICAL)
    board.receive_attack(Coordinate(1, 0))
    board.receive_attack(Coordinate(5, 5))
    state = board.derived_state()
    groups = [state.ship_not_hit, state.ship_hit, state.missed, state.not_shot]
    everything = [coord for group in groups for coord in group]
    assert len(everything) == len(set(everything)) == 36
    assert state.ship_hit == (Coordinate(1, 0),)
    assert state.ship_not_hit == (Coordinate(0, 0), Coordinate(2, 0))
    assert state.missed == (Coordinate(5, 5),)


def test_valid_placement_origins() -> None:
    board = Board()
    assert len(board.valid_placement_origins()) == 100

    board.place_ship(1, Coordinate(0, 0), Orientation.HORIZONTAL)
    origins = board.valid_placement_origins()
    assert len(origins) == 96
    for blocked in (Coordinate(0, 0), Coordinate(0, 1), Coordinate(1, 0), Coordinate(1, 1)):
        assert blocked not in origins
    assert Coordinate(0, 2) in origins


@pytest.mark.parametrize("seed", range(25))
def test_generate_random_ships_fits_standard_fleet(seed: int) -> None:
    board = Board(10)
    assert board.generate_random_ships(FLEET, random.Random(seed)) is True
    assert sorted(ship.length for ship in board.ships) == sorted(FLEET)
    assert len(board.derived_state().ship_not_hit) == sum(FLEET)
    for first, second in combinations(board.ships, 2):
        assert _chebyshev_gap(first, second) >= 2


def test_generate_random_ships_without_rng() -> None:
    board = Board(10)
    assert board.generate_random_ships([3, 2]) is True
    assert len(board.ships) == 2


def test_generate_random_ships_fails_on_congested_board() -> None:
    board = Board(10)
    for row in range(0, 9, 2):
        for col in range(0, 9, 2):
            if row != col:
                board.place_ship(1, Coordinate(row, col), Orientation.HORIZONTAL)
    placed_before = len(board.ships)

    assert board.generate_random_ships(FLEET, random.Random(3)) is False
    assert len(board.ships) >= placed_before


def test_reset_clears_ships_and_attacks() -> None:
    board = Board()
    board.place_ship(2, Coordinate(0, 0), Orientation.HORIZONTAL)
    board.receive_attack(Coordinate(4, 4))
    board.reset()
    assert board.ships == []
    assert len(board.derived_state().not_shot) == 100


def test_to_array_matches_derived_state() -> None:
    board = Board()
    board.place_ship(2, Coordinate(0, 0), Orientation.HORIZONTAL)
    board.receive_attack(Coordinate(0, 0))
    board.receive_attack(Coordinate(5, 5))

    grid = board.to_array()
    assert grid.shape == (10, 10)
    assert grid[0, 0] == SHIP_HIT
    assert grid[0, 1] == SHIP_NOT_HIT
    assert grid[5, 5] == MISSED
    assert grid[9, 9] == NOT_SHOT

    hidden = board.to_array(hide_ships=True)
    assert hidden[0, 1] == NOT_SHOT
    assert hidden[0, 0] == SHIP_HIT


def test_cell_at_rejects_out_of_bounds() -> None:
    board = Board(3)
    assert not board.is_within_board((3, 0))
    with pytest.raises(IndexError):
        board.cell_at(Coordinate(3, 0))
