"""
Tests for card generation.
"""

import random

import pytest

from meeting_bingo.card_generator import generate_card, generate_card_for, shuffle
from meeting_bingo.errors import CategoryNotFound, InsufficientWordPool
from meeting_bingo.schemas import FREE_SPACE, Category


class TestShuffle:
    def test_returns_permutation_without_touching_input(self):
        items = list(range(20))
        shuffled = shuffle(items, random.Random(3))
        assert items == list(range(20))
        assert sorted(shuffled) == items

    def test_seeded_rng_is_reproducible(self):
        assert shuffle("abcdefgh", random.Random(9)) == shuffle("abcdefgh", random.Random(9))


class TestGenerateCard:
    def test_card_shape_and_free_space(self, fruit_category):
        """24 distinct pool words plus a single filled free space at the center."""
        card = generate_card(fruit_category)
        flat = [sq for row in card.squares for sq in row]

        assert len(card.squares) == 5
        assert all(len(row) == 5 for row in card.squares)
        free = [sq for sq in flat if sq.isFreeSpace]
        assert len(free) == 1
        center = card.squares[2][2]
        assert center.isFreeSpace and center.isFilled
        assert center.word == FREE_SPACE
        assert center.isAutoFilled is False
        assert center.filledAt is not None

        words = [sq.word for sq in flat if not sq.isFreeSpace]
        assert len(words) == 24
        assert len(set(words)) == 24
        assert set(words) <= set(fruit_category.words)

    def test_words_follow_row_major_placement(self, fruit_category, rng):
        card = generate_card(fruit_category, rng)
        placed = [sq.word for row in card.squares for sq in row if not sq.isFreeSpace]
        assert card.words == placed

    def test_squares_start_unfilled_with_ids(self, fruit_category):
        card = generate_card(fruit_category)
        for row in card.squares:
            for sq in row:
                assert sq.id == f"{sq.row}-{sq.col}"
                if not sq.isFreeSpace:
                    assert not sq.isFilled
                    assert sq.filledAt is None

    def test_repeated_calls_differ(self, fruit_category):
        """Placement is random across calls."""
        layouts = {tuple(generate_card(fruit_category).words) for _ in range(5)}
        assert len(layouts) > 1

    def test_cards_do_not_share_state(self, fruit_category):
        first = generate_card(fruit_category, random.Random(1))
        second = generate_card(fruit_category, random.Random(1))
        first.squares[0][0].isFilled = True
        assert second.squares[0][0].isFilled is False

    def test_small_pool_rejected(self):
        category = Category(id="tiny", name="Tiny", words=[f"w{i}" for i in range(23)])
        with pytest.raises(InsufficientWordPool) as exc:
            generate_card(category)
        assert exc.value.available == 23

    def test_duplicates_do_not_count_toward_pool(self):
        words = [f"w{i}" for i in range(20)] + ["W1", "w2 ", "w3", "W4", "w5", "w6"]
        category = Category(id="dupes", name="Dupes", words=words)
        with pytest.raises(InsufficientWordPool):
            generate_card(category)

    def test_exact_pool_uses_every_word(self):
        words = [f"w{i}" for i in range(24)]
        card = generate_card(Category(id="exact", name="Exact", words=words))
        assert sorted(card.words) == sorted(words)


class TestGenerateCardFor:
    def test_builtin_category(self):
        card = generate_card_for("agile")
        assert len(card.words) == 24

    def test_unknown_category(self):
        with pytest.raises(CategoryNotFound):
            generate_card_for("knitting")
