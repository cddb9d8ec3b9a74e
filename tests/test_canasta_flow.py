import pytest

from cardengine.deck import create_deck
from cardengine.errors import RuleViolation
from cardengine.games.canasta import (
    AddToMeld,
    CanastaGame,
    CanastaPhase,
    CreateMeld,
    Discard,
    DrawPile,
    SkipMeld,
)

FOUR_PLAYERS = [{"seat": seat, "name": f"P{seat}"} for seat in range(4)]


def dealt(players=FOUR_PLAYERS, **kwargs):
    game = CanastaGame()
    return game, game.deal_or_setup(game.init_state(players, {"seed": 9}), **kwargs)


def cards(card, *texts):
    return [card(text) for text in texts]


def table(card, *, phase, turn=1, hands=None, pile=()):
    """Four-seat hand with chosen hands and pile and nothing melded."""
    game, state = dealt()
    state.phase = phase
    state.current_turn = turn
    state.hands = [cards(card, *hand) for hand in (hands or [[], [], [], []])]
    state.discard_pile = cards(card, *pile)
    state.red_threes = [[] for _ in range(4)]
    state.melds = [[], []]
    state.has_opened = [False, False]
    return game, state


@pytest.mark.parametrize("seats, size", [(2, 15), (3, 13), (4, 11), (6, 11)])
def test_hand_sizes_and_sides(seats, size):
    players = [{"seat": seat, "name": f"P{seat}"} for seat in range(seats)]
    game, state = dealt(players)

    assert [len(hand) for hand in state.hands] == [size] * seats
    assert len(state.all_cards()) == 108
    assert len(state.discard_pile) == 1
    assert state.current_turn == 1
    if seats in (4, 6):
        assert state.side_of == [seat % 2 for seat in range(seats)]
        assert len(state.melds) == 2
    else:
        assert state.side_of == list(range(seats))


def test_red_three_laid_out_and_replaced_at_deal(stacked_deck):
    players = FOUR_PLAYERS[:2]
    dealer_hand = ["3_hearts"] + [f"{rank}_{suit}" for rank in "456789" for suit in ("clubs", "spades")] + [
        "10_clubs",
        "10_spades",
    ]
    other_hand = [f"{rank}_{suit}" for rank in "JQKA" for suit in ("clubs", "spades")] + [
        f"{rank}_hearts" for rank in ("4", "5", "6", "7", "8", "9", "10")
    ]
    deck = stacked_deck([dealer_hand, other_hand], create_deck("canasta"), top=["K_diamonds", "Q_diamonds"])

    game, state = dealt(players, deck=deck)

    assert [card.id for card in state.red_threes[0]] == ["3_hearts_0"]
    assert len(state.hands[0]) == 15
    assert "Q_diamonds_0" in {card.id for card in state.hands[0]}
    assert state.discard_pile[-1].id == "K_diamonds_0"
    assert len(state.all_cards()) == 108


def test_pile_needs_a_natural_pair(card):
    game, state = table(card, phase=CanastaPhase.DRAW, hands=[[], ["K_clubs", "2_hearts", "4_hearts"], [], []], pile=["K_hearts"])
    assert game.validate_move(state, 1, DrawPile()).code == "need_natural_pair"

    state.hands[1].append(card("K_spades"))
    assert game.validate_move(state, 1, DrawPile()).ok
    state = game.attempt_move(state, 1, DrawPile())
    assert state.phase is CanastaPhase.MELD
    assert state.discard_pile == []
    assert len(state.hands[1]) == 5


@pytest.mark.parametrize("top", ["2_clubs", "joker_wild", "3_spades"])
def test_frozen_pile(card, top):
    game, state = table(card, phase=CanastaPhase.DRAW, hands=[[], ["2_hearts", "joker_wild_1", "3_clubs", "3_clubs_1"], [], []], pile=[top])

    assert game.validate_move(state, 1, DrawPile()).code == "pile_frozen"


def test_empty_pile(card):
    game, state = table(card, phase=CanastaPhase.DRAW, hands=[[], ["4_hearts"], [], []])

    assert game.validate_move(state, 1, DrawPile()).code == "empty_pile"


def test_first_meld_minimum_applies_per_side(card):
    hand = ["K_clubs", "K_spades", "K_hearts", "A_clubs", "A_spades", "A_hearts", "4_clubs"]
    game, state = table(card, phase=CanastaPhase.MELD, hands=[[], hand, [], []])

    kings = CreateMeld(card_ids=("K_clubs_0", "K_spades_0", "K_hearts_0"))
    aces = CreateMeld(card_ids=("A_clubs_0", "A_spades_0", "A_hearts_0"))
    assert game.validate_move(state, 1, kings).code == "meld_below_minimum"

    state = game.attempt_move(state, 1, aces)
    assert state.has_opened == [False, True]
    assert len(state.melds[1]) == 1

    assert game.validate_move(state, 1, kings).ok


def test_meld_errors(card):
    game, state = table(card, phase=CanastaPhase.MELD, hands=[[], ["K_clubs", "4_clubs"], [], []])

    assert game.validate_move(state, 1, AddToMeld(meld_index=0, card_ids=("K_clubs_0",))).code == "unknown_meld"
    assert game.validate_move(state, 1, CreateMeld(card_ids=("K_clubs_0", "K_clubs_0", "K_clubs_0"))).code == "duplicate_cards"
    assert game.validate_move(state, 1, CreateMeld(card_ids=("K_spades_0",))).code == "card_not_in_hand"
    assert game.validate_move(state, 1, Discard(card_id="K_clubs_0")).code == "invalid_phase"


def test_going_out_scores_the_bonus(card):
    game, state = table(
        card,
        phase=CanastaPhase.MELD,
        hands=[["4_clubs"], ["A_diamonds"], ["K_clubs"], []],
    )
    state.melds[1] = [cards(card, "A_clubs", "A_spades", "A_hearts")]
    state.has_opened = [False, True]

    state = game.attempt_move(state, 1, AddToMeld(meld_index=0, card_ids=("A_diamonds_0",)))

    assert state.phase is CanastaPhase.HAND_END
    assert state.went_out == 1
    assert state.end_reason == "went_out"
    assert state.hand_scores == [-15, 180]
    assert state.total_scores == [-15, 180]


def test_skip_then_discard_passes_the_turn(card):
    game, state = table(card, phase=CanastaPhase.MELD, hands=[[], ["K_clubs", "4_clubs"], [], []], pile=["9_clubs"])

    state = game.attempt_move(state, 1, SkipMeld())
    state = game.attempt_move(state, 1, Discard(card_id="4_clubs_0"))

    assert state.phase is CanastaPhase.DRAW
    assert state.current_turn == 2
    assert state.discard_pile[-1].id == "4_clubs_0"


def test_reshuffle_keeps_the_top_discard(card):
    game, state = table(
        card,
        phase=CanastaPhase.DISCARD,
        hands=[[], ["K_clubs", "Q_clubs"], [], []],
        pile=["4_clubs", "5_clubs", "6_clubs"],
    )
    state.stock = []

    state = game.attempt_move(state, 1, Discard(card_id="K_clubs_0"))

    assert state.reshuffles == 1
    assert [card.id for card in state.discard_pile] == ["K_clubs_0"]
    assert sorted(card.id for card in state.stock) == ["4_clubs_0", "5_clubs_0", "6_clubs_0"]
    assert state.phase is CanastaPhase.DRAW


def test_exhausted_stock_ends_the_hand(card):
    game, state = table(card, phase=CanastaPhase.DISCARD, hands=[[], ["K_clubs", "5_hearts"], [], []], pile=["4_clubs"])
    state.stock = []
    state.reshuffles = 2
    state.red_threes[0] = cards(card, "3_hearts")

    state = game.attempt_move(state, 1, Discard(card_id="5_hearts_0"))

    assert state.phase is CanastaPhase.HAND_END
    assert state.end_reason == "stock_exhausted"
    assert state.went_out is None
    # Unopened sides lose their red threes.
    assert state.hand_scores == [-100, -10]


def test_session_ends_at_five_thousand(card):
    game, state = table(card, phase=CanastaPhase.HAND_END)
    state.total_scores = [4990, 3000]
    assert not game.check_end_condition(state).ended

    state.total_scores = [5100, 4000]
    result = game.check_end_condition(state)
    assert result.ended
    assert result.winners == (0, 2)


def test_meld_rules_surface_as_rule_violations(card):
    game, state = table(card, phase=CanastaPhase.MELD, hands=[[], ["K_clubs", "K_spades", "Q_clubs"], [], []])

    with pytest.raises(RuleViolation) as info:
        game.attempt_move(state, 1, CreateMeld(card_ids=("K_clubs_0", "K_spades_0", "Q_clubs_0")))
    assert info.value.code == "mixed_ranks"
