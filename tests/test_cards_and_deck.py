import random

import pytest

from cardengine.cards import Card, Rank, Suit, deserialize_card, parse_card_id, remove_cards, serialize_card
from cardengine.deck import create_deck, deal, seeded_rng, shuffle


def test_deck_variants_have_unique_ids():
    standard = create_deck()
    pinochle = create_deck("pinochle")
    canasta = create_deck("canasta")
    shoe = create_deck(copies=6)

    assert len(standard) == 52
    assert len(pinochle) == 48
    assert len(canasta) == 108
    assert sum(1 for card in canasta if card.is_joker()) == 4
    assert len(shoe) == 312
    for deck in (standard, pinochle, canasta, shoe):
        assert len({card.id for card in deck}) == len(deck)


def test_unknown_variant_rejected():
    with pytest.raises(ValueError):
        create_deck("euchre")


def test_deal_is_round_robin_from_the_top():
    deck = create_deck()
    result = deal(deck, 4, 13)

    assert result.hands[0][0] == deck[0]
    assert result.hands[1][0] == deck[1]
    assert result.hands[0][1] == deck[4]
    assert all(len(hand) == 13 for hand in result.hands)
    assert result.remaining == []


def test_deal_rejects_short_deck():
    with pytest.raises(ValueError):
        deal(create_deck()[:10], 4, 3)


def test_shuffle_returns_copy_and_is_seedable():
    deck = create_deck()
    first = shuffle(deck, seeded_rng(5, 1))
    second = shuffle(deck, seeded_rng(5, 1))
    other = shuffle(deck, seeded_rng(5, 2))

    assert deck == create_deck()
    assert first == second
    assert first != other
    assert sorted(card.id for card in first) == sorted(card.id for card in deck)
    assert len(shuffle(deck, random.Random(1))) == 52


def test_card_ids_round_trip():
    card = Card(Rank.TEN, Suit.HEARTS, 1)

    assert card.id == "10_hearts_1"
    assert parse_card_id("10_hearts_1") == card
    assert deserialize_card(serialize_card(card)) == card
    with pytest.raises(ValueError):
        parse_card_id("ten of hearts")


def test_remove_cards_preserves_order():
    hand = [Card(Rank.ACE, Suit.SPADES), Card(Rank.TWO, Suit.CLUBS), Card(Rank.KING, Suit.HEARTS)]

    kept, removed = remove_cards(hand, ["2_clubs_0"])

    assert kept == [hand[0], hand[2]]
    assert removed == [hand[1]]
