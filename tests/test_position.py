import itertools

from rsvp_reader.ingest import Book, Chapter
from rsvp_reader.position import (
    START,
    Position,
    advance,
    chapter_start,
    clamp,
    is_valid,
    retreat,
    words_before,
)


def _walk_forward(book, position):
    visited = [position]
    while True:
        position = advance(book, position)
        if position is None:
            return visited
        visited.append(position)


def test_advance_crosses_paragraph_and_chapter_boundaries(book):
    visited = _walk_forward(book, START)

    assert visited == [
        Position(0, 0, 0),
        Position(0, 0, 1),
        Position(0, 0, 2),
        Position(0, 1, 0),
        Position(0, 1, 1),
        Position(1, 0, 0),
        Position(1, 0, 1),
    ]


def test_advance_at_last_word_signals_end_of_book(book):
    assert advance(book, Position(1, 0, 1)) is None


def test_advance_leaves_unresolvable_position_unchanged():
    book = Book(title="Empty", author="", chapters=[Chapter(index=0, title="Blank")])

    assert advance(book, START) == START


def test_retreat_mirrors_advance(book):
    forward = _walk_forward(book, START)
    backward = [forward[-1]]
    for _ in range(len(forward) - 1):
        backward.append(retreat(book, backward[-1]))

    assert backward == list(reversed(forward))


def test_retreat_at_start_is_noop(book):
    assert retreat(book, START) == START


def test_retreat_into_empty_chapter_lands_on_its_origin(empty_paragraph_book):
    assert retreat(empty_paragraph_book, Position(2, 0, 0)) == Position(1, 0, 0)


def test_retreat_into_empty_paragraph_uses_word_zero(empty_paragraph_book):
    assert retreat(empty_paragraph_book, Position(2, 1, 0)) == Position(2, 0, 0)


def test_chapter_start_rejects_out_of_range(book):
    assert chapter_start(book, 1) == Position(1, 0, 0)
    assert chapter_start(book, 2) is None
    assert chapter_start(book, -1) is None


def test_is_valid_checks_every_component(book):
    assert is_valid(book, Position(0, 1, 1))
    assert not is_valid(book, Position(0, 1, 2))
    assert not is_valid(book, Position(0, 2, 0))
    assert not is_valid(book, Position(2, 0, 0))
    assert not is_valid(book, Position(-1, 0, 0))


def test_clamp_keeps_valid_positions(book):
    assert clamp(book, Position(0, 1, 1)) == (Position(0, 1, 1), False)


def test_clamp_pulls_components_into_range(book):
    assert clamp(book, Position(9, 9, 9)) == (Position(1, 0, 1), True)
    assert clamp(book, Position(0, 5, 0)) == (Position(0, 1, 0), True)
    assert clamp(book, Position(-3, -1, -7)) == (Position(0, 0, 0), True)


def test_clamp_walks_back_over_empty_chapters(empty_paragraph_book):
    position, changed = clamp(empty_paragraph_book, Position(1, 3, 4))

    assert position == Position(0, 0, 1)
    assert changed


def test_clamp_keeps_empty_first_chapter():
    book = Book(title="Hollow", author="", chapters=[Chapter(index=0, title="Blank")])

    assert clamp(book, Position(4, 2, 1)) == (START, True)


def test_clamp_on_book_without_chapters():
    book = Book(title="Nothing", author="")

    assert clamp(book, START) == (START, False)
    assert clamp(book, Position(1, 1, 1)) == (START, True)


def test_clamp_always_produces_valid_position(book, empty_paragraph_book):
    for candidate_book in (book, empty_paragraph_book):
        for indices in itertools.product(range(-2, 5), repeat=3):
            position, _ = clamp(candidate_book, Position(*indices))
            chapter = candidate_book.chapters[position.chapter_index]
            paragraph = chapter.paragraphs[position.paragraph_index]
            # Empty paragraphs are the only place a clamped word index can dangle.
            assert paragraph.words == [] or is_valid(candidate_book, position)


def test_words_before_counts_reading_order(book):
    assert words_before(book, START) == 0
    assert words_before(book, Position(0, 1, 1)) == 4
    assert words_before(book, Position(1, 0, 1)) == 6
