import pytest

from cardengine.errors import NotYourTurn
from cardengine.games.bridge import (
    BidCall,
    BridgeGame,
    BridgePhase,
    DoubleCall,
    PassCall,
    RedoubleCall,
    choose_call,
)
from cardengine.moves import PlayCard
from cardengine.scoring import Strain
from cardengine.trick import Trick

PLAYERS = [{"seat": seat, "name": name} for seat, name in enumerate(["North", "East", "South", "West"])]


def new_hand(settings=None):
    game = BridgeGame()
    return game, game.deal_or_setup(game.init_state(PLAYERS, settings or {"seed": 21}))


def call_sequence(game, state, calls):
    for call in calls:
        state = game.attempt_move(state, state.current_turn, call)
    return state


def four_hearts_by_north():
    game, state = new_hand()
    state = call_sequence(
        game,
        state,
        [
            BidCall(level=1, strain=Strain.HEARTS),
            PassCall(),
            BidCall(level=4, strain=Strain.HEARTS),
            PassCall(),
            PassCall(),
            PassCall(),
        ],
    )
    return game, state


def test_dealer_opens_the_auction():
    game, state = new_hand()

    assert state.dealer == 0
    assert state.current_turn == 0
    assert state.vulnerability == "none"
    assert [len(hand) for hand in state.hands] == [13] * 4


def test_declarer_is_first_to_name_the_strain():
    game, state = four_hearts_by_north()

    assert state.phase is BridgePhase.PLAYING
    assert (state.contract_level, state.contract_strain) == (4, Strain.HEARTS)
    assert state.declarer == 0
    assert state.dummy == 2
    assert state.current_turn == 1


def test_insufficient_bid():
    game, state = new_hand()
    state = game.attempt_move(state, 0, BidCall(level=1, strain=Strain.NOTRUMP))

    assert game.validate_move(state, 1, BidCall(level=1, strain=Strain.SPADES)).code == "insufficient_bid"
    assert game.validate_move(state, 1, BidCall(level=2, strain=Strain.CLUBS)).ok


def test_double_and_redouble_rules():
    game, state = new_hand()
    state = call_sequence(game, state, [BidCall(level=1, strain=Strain.CLUBS), PassCall()])

    assert game.validate_move(state, 2, DoubleCall()).code == "cannot_double"
    state = call_sequence(game, state, [PassCall(), DoubleCall()])
    assert state.doubled
    assert game.validate_move(state, 0, RedoubleCall()).ok
    state = game.attempt_move(state, 0, PassCall())
    assert game.validate_move(state, 1, RedoubleCall()).code == "cannot_redouble"
    assert game.validate_move(state, 1, DoubleCall()).code == "cannot_double"


def test_passed_out_hand_is_redealt_by_the_same_dealer():
    game, state = new_hand()

    state = call_sequence(game, state, [PassCall()] * 4)

    assert state.phase is BridgePhase.BIDDING
    assert state.deal_count == 2
    assert state.round_number == 1
    assert state.dealer == 0
    assert state.current_turn == 0
    assert state.auction == []
    assert sorted(card.id for card in game.all_cards(state)) == sorted(
        card.id for card in game.all_cards(new_hand()[1])
    )


def test_dummy_revealed_after_opening_lead_and_played_by_declarer():
    game, state = four_hearts_by_north()
    assert isinstance(game.get_public_state(state, 1)["hands"][2], int)

    state = game.attempt_move(state, 1, game.default_move(state, 1))

    assert state.current_turn == 2
    assert isinstance(game.get_public_state(state, 1)["hands"][2], list)
    assert game.get_valid_moves(state, 0) == game.get_valid_moves(state, 2)
    with pytest.raises(NotYourTurn):
        game.attempt_move(state, 3, PlayCard(card_id=state.hands[3][0].id))
    move = game.get_valid_moves(state, 0)[0]
    state = game.attempt_move(state, 0, move)
    assert len(state.hands[2]) == 12
    assert len(state.hands[0]) == 13
    assert state.current_turn == 3


def test_last_trick_scores_the_contract(card):
    game, state = new_hand({"seed": 21, "hand_limit": 1})
    state.phase = BridgePhase.PLAYING
    state.contract_level, state.contract_strain, state.contract_bidder = 4, Strain.SPADES, 0
    state.declarer = 0
    state.hands = [[card("A_spades")], [card("2_hearts")], [card("3_hearts")], [card("4_hearts")]]
    state.tricks_taken = [6, 0, 3, 0]
    state.trick = Trick(leader=0, seats=4)
    state.current_turn = 0

    for seat in range(4):
        state = game.attempt_move(state, seat, PlayCard(card_id=state.hands[seat][0].id))

    assert state.phase is BridgePhase.HAND_END
    assert state.declaring_tricks() == 10
    assert state.hand_score == 420
    assert state.totals == [420, 0]
    result = game.check_end_condition(state)
    assert result.ended
    assert result.reason == "hand_limit"
    assert result.winners == (0, 2)


def test_no_end_without_hand_limit():
    game, state = new_hand()
    state.phase = BridgePhase.HAND_END
    state.hands_played = 50

    assert not game.check_end_condition(state).ended


def test_dealer_and_vulnerability_rotate():
    game, state = new_hand()
    state.phase = BridgePhase.HAND_END

    state = game.deal_or_setup(state)

    assert state.round_number == 2
    assert state.dealer == 1
    assert state.current_turn == 1
    assert state.vulnerability == "ns"


def test_bidding_heuristic_opens_by_points(card):
    game, state = new_hand()
    state.hands[0] = [
        card(text)
        for text in ["A_spades", "K_spades", "5_spades", "4_spades", "3_spades", "K_hearts", "4_hearts",
                     "3_hearts", "Q_diamonds", "2_diamonds", "9_clubs", "3_clubs", "2_clubs"]
    ]
    assert choose_call(state, 0) == BidCall(level=1, strain=Strain.SPADES)

    state.hands[0] = [
        card(text)
        for text in ["A_spades", "K_spades", "4_spades", "A_hearts", "Q_hearts", "3_hearts", "K_diamonds",
                     "5_diamonds", "4_diamonds", "3_diamonds", "J_clubs", "3_clubs", "2_clubs"]
    ]
    assert choose_call(state, 0) == BidCall(level=1, strain=Strain.NOTRUMP)

    state.hands[0] = state.hands[0][:2] + [card("2_spades")] + [card(f"{rank}_hearts") for rank in "2345"] + [
        card(f"{rank}_clubs") for rank in ("4", "5", "6", "7", "8", "9")
    ]
    assert choose_call(state, 0) == PassCall()
