from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .errors import InvalidBoardLayout

_NEIGHBOR_OFFSETS = (
    (-1, -1),
    (0, -1),
    (1, -1),
    (-1, 0),
    (1, 0),
    (-1, 1),
    (0, 1),
    (1, 1),
)


@dataclass(frozen=True, slots=True)
class BoardMetrics:
    openings: int
    islands: int
    min_clicks: int


def neighbors(index: int, width: int, height: int) -> Iterator[int]:
    """Yield the 8-connected neighbours of a row-major cell index."""
    column = index % width
    row = index // width
    for dx, dy in _NEIGHBOR_OFFSETS:
        nc = column + dx
        nr = row + dy
        if 0 <= nc < width and 0 <= nr < height:
            yield nr * width + nc


def validate_layout(width: int, height: int, mine_mask: Sequence[bool]) -> None:
    width = int(width)
    height = int(height)
    if width < 1 or height < 1:
        raise InvalidBoardLayout(f"board must be at least 1x1, got {width}x{height}")
    if len(mine_mask) != width * height:
        raise InvalidBoardLayout(f"mine mask has {len(mine_mask)} cells, expected {width * height}")
    if sum(1 for mine in mine_mask if mine) >= width * height:
        raise InvalidBoardLayout("board has no safe cell")


def adjacent_mine_counts(width: int, height: int, mine_mask: Sequence[bool]) -> tuple[int, ...]:
    validate_layout(width, height, mine_mask)
    counts = [0] * (width * height)
    for index, mine in enumerate(mine_mask):
        if not mine:
            continue
        for other in neighbors(index, width, height):
            counts[other] += 1
    return tuple(counts)


def opening_floods(width: int, height: int, mine_mask: Sequence[bool]) -> list[set[int]]:
    """Return every opening as the set of cells its flood fill reveals.

    An opening is a maximal 8-connected region of zero cells; its flood also
    reveals the numbered cells bordering that region.
    """

    counts = adjacent_mine_counts(width, height, mine_mask)
    seen = [False] * (width * height)
    floods: list[set[int]] = []
    for start in range(width * height):
        if seen[start] or mine_mask[start] or counts[start] != 0:
            continue
        flood = {start}
        seen[start] = True
        queue = deque([start])
        while queue:
            index = queue.popleft()
            for other in neighbors(index, width, height):
                if mine_mask[other]:
                    continue
                flood.add(other)
                if counts[other] == 0 and not seen[other]:
                    seen[other] = True
                    queue.append(other)
        floods.append(flood)
    return floods


def count_islands(width: int, height: int, mine_mask: Sequence[bool]) -> int:
    validate_layout(width, height, mine_mask)
    parent = list(range(width * height))

    def find(index: int) -> int:
        while parent[index] != index:
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    for index in range(width * height):
        if mine_mask[index]:
            continue
        for other in neighbors(index, width, height):
            if other < index and not mine_mask[other]:
                root_a = find(index)
                root_b = find(other)
                if root_a != root_b:
                    parent[root_a] = root_b

    return len({find(index) for index in range(width * height) if not mine_mask[index]})


def compute_board_metrics(width: int, height: int, mine_mask: Sequence[bool]) -> BoardMetrics:
    floods = opening_floods(width, height, mine_mask)
    covered: set[int] = set()
    for flood in floods:
        covered |= flood
    lone_cells = sum(1 for index in range(width * height) if not mine_mask[index] and index not in covered)
    return BoardMetrics(
        openings=len(floods),
        islands=count_islands(width, height, mine_mask),
        min_clicks=len(floods) + lone_cells,
    )
