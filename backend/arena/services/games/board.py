from typing import List, Mapping, Optional

BOARD_SIZE = 9

# Rows, columns, diagonals. Scan order decides which line reports first.
LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


def empty_board() -> List[Optional[str]]:
    return [None] * BOARD_SIZE


def is_full(board: List[Optional[str]]) -> bool:
    return all(cell is not None for cell in board)


def find_winner(board: List[Optional[str]], symbols: Mapping[str, str]) -> Optional[str]:
    """Return the username owning the first completed line, or None.

    ``symbols`` maps username -> symbol; the winning symbol is mapped back
    to whoever placed it.
    """
    for a, b, c in LINES:
        symbol = board[a]
        if symbol is not None and symbol == board[b] and symbol == board[c]:
            for username, owned in symbols.items():
                if owned == symbol:
                    return username
            return None
    return None
