from cardengine.cards import Suit
from cardengine.games.pinochle import Bid, PassBid, PinochleGame, PinochlePhase, SelectTrump
from cardengine.moves import PlayCard
from cardengine.trick import Trick

PLAYERS = [{"seat": seat, "name": f"P{seat}"} for seat in range(4)]


def dealt():
    game = PinochleGame()
    return game, game.deal_or_setup(game.init_state(PLAYERS, {"seed": 5}))


def calls(game, state, moves):
    for move in moves:
        state = game.attempt_move(state, state.current_turn, move)
    return state


def playing(card, *, hands, leader=0, plays=()):
    game, state = dealt()
    state.phase = PinochlePhase.PLAYING
    state.trump = Suit.HEARTS
    state.high_bidder = 0
    state.high_bid = 20
    state.hands = [[card(text) for text in hand] for hand in hands]
    state.trick = Trick(leader=leader, seats=4, plays=[(seat, card(text)) for seat, text in plays])
    state.current_turn = state.trick.next_to_play()
    return game, state


def test_deal_gives_twelve_cards_each():
    game, state = dealt()

    assert [len(hand) for hand in state.hands] == [12] * 4
    assert len(state.all_cards()) == 48
    assert state.dealer == 0
    assert state.current_turn == 1
    assert state.phase is PinochlePhase.BIDDING


def test_bid_bounds():
    game, state = dealt()

    assert game.validate_move(state, 1, Bid(amount=19)).code == "bid_too_low"
    assert game.validate_move(state, 1, Bid(amount=51)).code == "bid_too_high"
    state = game.attempt_move(state, 1, Bid(amount=20))
    assert game.validate_move(state, 2, Bid(amount=20)).code == "bid_too_low"
    assert game.get_valid_moves(state, 2)[:2] == [PassBid(), Bid(amount=21)]


def test_passed_seats_are_skipped():
    game, state = dealt()

    state = calls(game, state, [Bid(amount=20), PassBid(), Bid(amount=21), PassBid(), Bid(amount=22)])
    assert state.current_turn == 3

    state = game.attempt_move(state, 3, PassBid())
    assert state.phase is PinochlePhase.TRUMP_SELECTION
    assert state.high_bidder == 1
    assert state.high_bid == 22
    assert state.current_turn == 1


def test_dealer_is_stuck_when_everyone_passes():
    game, state = dealt()

    state = calls(game, state, [PassBid()] * 4)

    assert state.phase is PinochlePhase.TRUMP_SELECTION
    assert state.high_bidder == 0
    assert state.high_bid == 20


def test_last_seat_bidding_wins_immediately():
    game, state = dealt()

    state = calls(game, state, [PassBid(), PassBid(), PassBid(), Bid(amount=20)])

    assert state.phase is PinochlePhase.TRUMP_SELECTION
    assert state.high_bidder == 0


def test_trump_selection():
    game, state = dealt()
    state = calls(game, state, [Bid(amount=20), PassBid(), PassBid(), PassBid()])

    assert game.validate_move(state, 1, SelectTrump(suit=Suit.WILD)).code == "invalid_suit"
    state = game.attempt_move(state, 1, SelectTrump(suit=Suit.SPADES))
    assert state.phase is PinochlePhase.PLAYING
    assert state.trump is Suit.SPADES
    assert len(state.melds) == 4
    assert state.current_turn == 1


def test_void_seat_must_trump(card):
    game, state = playing(
        card,
        hands=[[], ["9_hearts", "9_spades"], ["A_clubs"], ["K_clubs"]],
        plays=[(0, "9_clubs")],
    )

    assert game.validate_move(state, 1, PlayCard(card_id="9_spades_0")).code == "must_trump"
    assert game.validate_move(state, 1, PlayCard(card_id="9_hearts_0")).ok

    state.hands[1].append(card("J_clubs"))
    assert game.validate_move(state, 1, PlayCard(card_id="9_hearts_0")).code == "must_follow"


def test_last_trick_settles_the_round(card):
    game, state = playing(card, hands=[["A_hearts"], ["9_clubs"], ["10_hearts"], ["K_clubs"]])
    state.meld_points = [10, 0, 4, 0]
    state.team_counters = [8, 3]
    state.counter_cards = [8, 3]

    for seat in range(4):
        state = game.attempt_move(state, seat, PlayCard(card_id=state.hands[seat][0].id))

    assert state.phase is PinochlePhase.ROUND_END
    assert state.team_counters == [12, 3]
    assert state.round_deltas == [26, 3]
    assert state.team_scores == [26, 3]


def test_bidding_team_that_falls_short_is_set(card):
    game, state = playing(card, hands=[["9_hearts"], ["A_hearts"], ["9_clubs"], ["J_clubs"]])
    state.high_bid = 30
    state.meld_points = [4, 0, 0, 0]
    state.team_counters = [10, 13]
    state.counter_cards = [10, 13]

    for seat in range(4):
        state = game.attempt_move(state, seat, PlayCard(card_id=state.hands[seat][0].id))

    assert state.round_deltas == [-30, 15]


def test_full_round_counts_every_counter():
    game, state = dealt()
    for _ in range(200):
        if state.phase is PinochlePhase.ROUND_END:
            break
        seat = state.current_turn
        state = game.advance_turn(game.attempt_move(state, seat, game.ai_move(state, seat, "expert")))

    assert state.phase is PinochlePhase.ROUND_END
    assert sum(state.team_counters) == 25
    assert sum(state.tricks_taken) == 12
    assert len(state.all_cards()) == 48


def test_session_ends_for_the_partnership():
    game, state = dealt()
    state.phase = PinochlePhase.ROUND_END
    state.team_scores = [150, 80]

    result = game.check_end_condition(state)

    assert result.ended
    assert result.winners == (0, 2)
