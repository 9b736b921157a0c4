from typing import NamedTuple, Sequence

ROWS = [[row * 5 + col for col in range(5)] for row in range(5)]
COLUMNS = [[row * 5 + col for row in range(5)] for col in range(5)]
DIAGONALS = [[0, 6, 12, 18, 24], [4, 8, 12, 16, 20]]
CORNERS = [0, 4, 20, 24]
MIDDLE_ROW = [10, 11, 12, 13, 14]
MIDDLE_COLUMN = [2, 7, 12, 17, 22]

# Point tariffs
POINTS_PER_LINE = 2
BINGO_POINTS = 4
CORNERS_POINTS = 1
MIDDLE_CROSS_POINTS = 2


class Patterns(NamedTuple):
    lines: int
    bingo: bool
    corners: bool
    middle_cross: bool

    def to_dict(self):
        return {
            'lines': self.lines,
            'bingo': self.bingo,
            'corners': self.corners,
            'middleCross': self.middle_cross,
        }


def _all_marked(marked: Sequence[bool], positions) -> bool:
    return all(marked[pos] for pos in positions)


def check_patterns(marked: Sequence[bool]) -> Patterns:
    """Detect completed patterns on a row-major 25-cell mark vector.

    Lines counts full rows, full columns and both diagonals (0..12).
    """
    if len(marked) != 25:
        raise ValueError(f"Expected 25 marks, got {len(marked)}")
    lines = sum(1 for line in ROWS + COLUMNS + DIAGONALS if _all_marked(marked, line))
    return Patterns(
        lines=lines,
        bingo=all(marked),
        corners=_all_marked(marked, CORNERS),
        middle_cross=_all_marked(marked, MIDDLE_ROW) and _all_marked(marked, MIDDLE_COLUMN),
    )


def calculate_points(lines: int, bingo: bool, corners: bool, middle_cross: bool, bonus: int = 0) -> int:
    """Apply the fixed tariffs: 2 per line, +4 bingo, +1 corners, +2 middle cross, plus bonus."""
    if lines < 0 or bonus < 0:
        raise ValueError("lines and bonus must be non-negative")
    points = lines * POINTS_PER_LINE + bonus
    if bingo:
        points += BINGO_POINTS
    if corners:
        points += CORNERS_POINTS
    if middle_cross:
        points += MIDDLE_CROSS_POINTS
    return points


def score_patterns(patterns: Patterns, bonus: int = 0) -> int:
    return calculate_points(patterns.lines, patterns.bingo, patterns.corners, patterns.middle_cross, bonus)
