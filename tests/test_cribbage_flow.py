from cardengine.deck import create_deck
from cardengine.games import cribbage
from cardengine.games.cribbage import CribbageGame, CribbagePhase, DiscardToCrib, Go
from cardengine.moves import PlayCard

PLAYERS = [{"seat": 0, "name": "Dealer"}, {"seat": 1, "name": "Pone"}]

DEALER_HAND = ["5_hearts", "5_clubs", "J_spades", "K_hearts", "2_clubs", "3_diamonds"]
PONE_HAND = ["A_spades", "4_hearts", "6_diamonds", "7_clubs", "8_spades", "9_hearts"]


def dealt(stacked_deck, starter="J_diamonds"):
    game = CribbageGame()
    deck = stacked_deck([DEALER_HAND, PONE_HAND], create_deck(), top=[starter])
    state = game.deal_or_setup(game.init_state(PLAYERS, {"seed": 3}), deck=deck)
    return game, state


def discard_both(game, state):
    state = game.attempt_move(state, 0, DiscardToCrib(card_ids=("2_clubs_0", "3_diamonds_0")))
    return game.attempt_move(state, 1, DiscardToCrib(card_ids=("A_spades_0", "4_hearts_0")))


def pegging_state(stacked_deck, card, *, hands, sequence, count, turn, last_player):
    game, state = dealt(stacked_deck)
    state.phase = CribbagePhase.PEGGING
    state.hands = [[card(text) for text in hand] for hand in hands]
    state.sequence = [card(text) for text in sequence]
    state.count = count
    state.current_turn = turn
    state.last_player = last_player
    return game, state


def test_deal_and_discard_barrier(stacked_deck):
    game, state = dealt(stacked_deck)

    assert state.dealer == 0
    assert [len(hand) for hand in state.hands] == [6, 6]
    assert len(state.stock) == 40
    assert game.get_valid_moves(state, 0)
    assert game.get_valid_moves(state, 1)

    state = game.attempt_move(state, 0, DiscardToCrib(card_ids=("2_clubs_0", "3_diamonds_0")))
    assert state.phase is CribbagePhase.DISCARD
    assert game.get_valid_moves(state, 0) == []
    assert game.validate_move(state, 0, DiscardToCrib(card_ids=("5_hearts_0", "5_clubs_0"))).code == "already_discarded"


def test_starter_cut_and_his_heels(stacked_deck):
    game, state = dealt(stacked_deck)

    state = discard_both(game, state)

    assert state.phase is CribbagePhase.PEGGING
    assert state.starter.id == "J_diamonds_0"
    assert len(state.crib) == 4
    assert state.scores == [2, 0]
    assert state.current_turn == 1


def test_no_heels_for_other_starters(stacked_deck):
    game, state = dealt(stacked_deck, starter="Q_diamonds")

    state = discard_both(game, state)

    assert state.scores == [0, 0]


def test_discard_validation(stacked_deck):
    game, state = dealt(stacked_deck)

    assert game.validate_move(state, 0, DiscardToCrib(card_ids=("2_clubs_0",))).code == "wrong_card_count"
    assert game.validate_move(state, 0, DiscardToCrib(card_ids=("2_clubs_0", "2_clubs_0"))).code == "wrong_card_count"
    assert game.validate_move(state, 0, DiscardToCrib(card_ids=("2_clubs_0", "A_spades_0"))).code == "card_not_in_hand"


def test_go_pegs_one_for_last_card(stacked_deck, card):
    game, state = pegging_state(
        stacked_deck,
        card,
        hands=[["5_clubs", "4_clubs"], ["K_hearts"]],
        sequence=["5_hearts", "K_spades", "Q_spades"],
        count=25,
        turn=1,
        last_player=0,
    )

    assert game.validate_move(state, 1, PlayCard(card_id="K_hearts_0")).code == "count_exceeds_31"
    assert game.get_valid_moves(state, 1) == [Go()]
    state = game.attempt_move(state, 1, Go())
    assert state.current_turn == 0

    state = game.attempt_move(state, 0, PlayCard(card_id="5_clubs_0"))
    assert state.count == 30
    assert state.current_turn == 0
    assert game.validate_move(state, 0, Go()).ok

    state = game.attempt_move(state, 0, Go())
    assert state.scores == [1, 0]
    assert state.count == 0
    assert state.sequence == []
    assert state.current_turn == 1


def test_must_play_when_a_card_fits(stacked_deck, card):
    game, state = pegging_state(
        stacked_deck,
        card,
        hands=[["5_clubs"], ["K_hearts", "2_hearts"]],
        sequence=["10_hearts", "K_spades"],
        count=20,
        turn=1,
        last_player=0,
    )

    assert game.validate_move(state, 1, Go()).code == "must_play"


def test_thirty_one_scores_two_and_resets(stacked_deck, card):
    game, state = pegging_state(
        stacked_deck,
        card,
        hands=[["3_hearts"], ["10_clubs", "2_hearts"]],
        sequence=["K_hearts", "J_spades", "A_clubs"],
        count=21,
        turn=1,
        last_player=0,
    )

    state = game.attempt_move(state, 1, PlayCard(card_id="10_clubs_0"))

    assert state.scores == [0, 2]
    assert state.count == 0
    assert state.sequence == []
    assert state.current_turn == 0


def test_show_stops_once_someone_wins(card):
    game = CribbageGame()
    state = game.deal_or_setup(game.init_state(PLAYERS, {"seed": 3}))
    state.scores = [0, 119]
    state.hands = [[], []]
    state.played = [
        [card(text) for text in ["2_clubs", "3_clubs", "4_clubs", "6_hearts"]],
        [card(text) for text in ["5_hearts", "5_clubs", "J_spades", "K_hearts"]],
    ]
    state.crib = [card(text) for text in ["7_clubs", "8_clubs", "9_clubs", "10_clubs"]]
    state.starter = card("5_spades")

    cribbage._count_show(state)

    assert state.phase is CribbagePhase.ROUND_END
    assert list(state.show) == ["pone"]
    assert state.scores[0] == 0
    assert state.scores[1] >= 121
    result = game.check_end_condition(state)
    assert result.ended
    assert result.winners == (1,)


def test_end_checked_in_any_phase(stacked_deck):
    game, state = dealt(stacked_deck)
    state = discard_both(game, state)
    state.scores = [121, 40]

    result = game.check_end_condition(state)

    assert result.ended
    assert result.winners == (0,)


def test_crib_hidden_until_show(stacked_deck):
    game, state = dealt(stacked_deck)
    state = discard_both(game, state)

    view = game.get_public_state(state, 0)

    assert view["crib"] == 4
    assert isinstance(view["hands"][0], list)
    assert view["hands"][1] == 4
    assert view["starter"]["id"] == "J_diamonds_0"


def test_autoplay_round_reaches_show(stacked_deck):
    game, state = dealt(stacked_deck)
    for _ in range(200):
        seat = next((seat for seat in range(2) if game.get_valid_moves(state, seat)), None)
        if seat is None:
            break
        state = game.attempt_move(state, seat, game.ai_move(state, seat, "expert"))

    assert state.phase is CribbagePhase.ROUND_END
    assert set(state.show) == {"pone", "dealer", "crib"} or max(state.scores) >= 121
    assert len(state.all_cards()) == 52
