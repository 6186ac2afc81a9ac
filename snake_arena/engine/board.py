from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


BOARD_SIZE = 20


@dataclass(frozen=True, slots=True)
class Direction:
    dx: int
    dy: int

    def is_opposite(self, other: "Direction") -> bool:
        return self.dx == -other.dx and self.dy == -other.dy


UP = Direction(0, -1)
DOWN = Direction(0, 1)
LEFT = Direction(-1, 0)
RIGHT = Direction(1, 0)

DIRECTIONS: tuple[Direction, ...] = (RIGHT, LEFT, DOWN, UP)


@dataclass(frozen=True, slots=True)
class Cell:
    x: int
    y: int

    def shifted(self, direction: Direction) -> "Cell":
        return Cell(self.x + direction.dx, self.y + direction.dy)

    def in_bounds(self, size: int = BOARD_SIZE) -> bool:
        return 0 <= self.x < size and 0 <= self.y < size


class CellMarker(StrEnum):
    empty = "empty"
    snake = "snake"
    food = "food"


_TEXT_GLYPHS: dict[CellMarker, str] = {
    CellMarker.empty: ".",
    CellMarker.snake: "#",
    CellMarker.food: "*",
}


def project_board(snake: Sequence[Cell], food: Cell, *, size: int = BOARD_SIZE) -> list[list[CellMarker]]:
    """Project a snake + food onto a `size x size` grid, indexed `grid[y][x]`.

    Pure: the grid is recomputed from its inputs every call. Cells outside the
    board are skipped rather than raising; food is drawn last so it stays visible.
    """

    grid = [[CellMarker.empty for _ in range(size)] for _ in range(size)]

    for segment in snake:
        if segment.in_bounds(size):
            grid[segment.y][segment.x] = CellMarker.snake

    if food.in_bounds(size):
        grid[food.y][food.x] = CellMarker.food

    return grid


def render_text(grid: Sequence[Sequence[CellMarker]]) -> str:
    return "\n".join("".join(_TEXT_GLYPHS[marker] for marker in row) for row in grid)
