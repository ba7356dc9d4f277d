import pytest

from arena.services.games.board import LINES, empty_board, find_winner, is_full

SYMBOLS = {'alice': 'X', 'bob': 'O'}


def test_row_win_maps_symbol_to_owner():
    board = ['X', 'X', 'X', None, None, None, None, None, None]
    assert find_winner(board, SYMBOLS) == 'alice'


@pytest.mark.parametrize('line', LINES)
def test_every_line_wins(line):
    board = empty_board()
    for idx in line:
        board[idx] = 'O'
    assert find_winner(board, SYMBOLS) == 'bob'


def test_empty_board_has_no_winner():
    assert find_winner(empty_board(), SYMBOLS) is None


@pytest.mark.parametrize('line', LINES)
def test_mixed_line_is_not_a_win(line):
    board = empty_board()
    a, b, c = line
    board[a], board[b], board[c] = 'X', 'O', 'X'
    assert find_winner(board, SYMBOLS) is None


def test_two_in_a_line_is_not_a_win():
    board = ['X', 'X', None, 'O', 'O', None, None, None, None]
    assert find_winner(board, SYMBOLS) is None


def test_first_line_in_scan_order_decides():
    board = ['X', 'X', 'X', None, None, None, 'O', 'O', 'O']
    assert find_winner(board, SYMBOLS) == 'alice'


def test_full_board_without_line():
    board = ['X', 'O', 'X',
             'X', 'O', 'O',
             'O', 'X', 'X']
    assert is_full(board)
    assert find_winner(board, SYMBOLS) is None


def test_custom_symbols():
    board = ['🐱', None, None, '🐱', None, None, '🐱', None, None]
    assert find_winner(board, {'alice': '🐶', 'bob': '🐱'}) == 'bob'


def test_empty_board_is_nine_empty_cells():
    board = empty_board()
    assert board == [None] * 9
    assert not is_full(board)
