import unittest

from domain.errors import (
    DoubleOnBlackjackError,
    InvalidBetError,
    InvalidOutcomeError,
    UnknownHandError,
    UnknownPlayerError,
)
from domain.models import Hand, Player
from domain.round_ledger import (
    initialize_round_ledger,
    needs_reinitialize,
    set_bet,
    set_outcome,
    split_hand,
    toggle_double,
)


class RoundLedgerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.players = [
            Player(id="d", name="Dealer"),
            Player(id="a", name="Alice", last_bet=50),
            Player(id="b", name="Bob", last_bet=0),
        ]
        self.ledger = initialize_round_ledger(self.players, dealer_id="d")

    def test_initialize_seeds_one_losing_hand_per_non_dealer(self):
        self.assertEqual(set(self.ledger), {"a", "b"})
        self.assertEqual(self.ledger["a"].hands, [Hand(bet=50, outcome="lose")])
        # Missing/zero last bet falls back to the default.
        self.assertEqual(self.ledger["b"].hands[0].bet, 20)

    def test_initialize_without_dealer_seats_everyone(self):
        ledger = initialize_round_ledger(self.players)
        self.assertEqual(set(ledger), {"d", "a", "b"})

    def test_needs_reinitialize_when_roster_changes(self):
        self.assertFalse(needs_reinitialize(self.ledger, self.players, "d"))

        grown = self.players + [Player(id="c", name="Carol")]
        self.assertTrue(needs_reinitialize(self.ledger, grown, "d"))
        self.assertTrue(needs_reinitialize(self.ledger, self.players[:2], "d"))
        # Dealer swap changes who is seated.
        self.assertTrue(needs_reinitialize(self.ledger, self.players, "a"))
        self.assertTrue(needs_reinitialize({}, self.players, "d"))

    def test_set_bet_clears_pending_double(self):
        doubled = toggle_double(self.ledger, "a", 0)
        updated = set_bet(doubled, "a", 0, 30)
        self.assertEqual(updated["a"].hands[0], Hand(bet=30, outcome="lose"))

    def test_set_bet_rejects_non_positive_amounts(self):
        with self.assertRaises(InvalidBetError):
            set_bet(self.ledger, "a", 0, 0)

    def test_set_bet_rejects_nan_and_infinite_amounts(self):
        for bet in (float("nan"), float("inf"), float("-inf")):
            with self.assertRaises(InvalidBetError):
                set_bet(self.ledger, "a", 0, bet)

    def test_mutations_do_not_touch_the_input_ledger(self):
        updated = set_outcome(self.ledger, "a", 0, "win")
        updated = toggle_double(updated, "a", 0)
        updated = split_hand(updated, "b")

        self.assertEqual(self.ledger["a"].hands, [Hand(bet=50, outcome="lose")])
        self.assertEqual(len(self.ledger["b"].hands), 1)
        self.assertEqual(updated["a"].hands[0], Hand(bet=100, outcome="win", original_bet=50))

    def test_set_outcome_does_not_change_bet(self):
        updated = set_outcome(self.ledger, "a", 0, "push")
        self.assertEqual(updated["a"].hands[0], Hand(bet=50, outcome="push"))

    def test_set_outcome_rejects_unknown_outcome(self):
        with self.assertRaises(InvalidOutcomeError):
            set_outcome(self.ledger, "a", 0, "surrender")

    def test_toggle_double_is_an_involution(self):
        for outcome in ("win", "lose", "push"):
            ledger = set_outcome(self.ledger, "a", 0, outcome)
            twice = toggle_double(toggle_double(ledger, "a", 0), "a", 0)
            self.assertEqual(twice["a"].hands[0], ledger["a"].hands[0])

    def test_toggle_double_applies_and_remembers_base_bet(self):
        updated = toggle_double(self.ledger, "a", 0)
        self.assertEqual(updated["a"].hands[0].bet, 100)
        self.assertEqual(updated["a"].hands[0].original_bet, 50)

    def test_doubling_a_blackjack_is_rejected(self):
        blackjack = set_outcome(self.ledger, "a", 0, "blackjack")
        with self.assertRaises(DoubleOnBlackjackError):
            toggle_double(blackjack, "a", 0)

        doubled = toggle_double(self.ledger, "a", 0)
        with self.assertRaises(DoubleOnBlackjackError):
            set_outcome(doubled, "a", 0, "blackjack")

    def test_split_duplicates_the_hand_once(self):
        ledger = toggle_double(self.ledger, "a", 0)
        split = split_hand(ledger, "a")
        self.assertEqual(len(split["a"].hands), 2)
        self.assertEqual(split["a"].hands[0], split["a"].hands[1])

        again = split_hand(split, "a")
        self.assertEqual(len(again["a"].hands), 2)

    def test_split_hands_are_edited_independently(self):
        split = split_hand(self.ledger, "a")
        updated = set_outcome(split, "a", 1, "win")
        self.assertEqual(updated["a"].hands[0].outcome, "lose")
        self.assertEqual(updated["a"].hands[1].outcome, "win")

    def test_unknown_player_and_hand_are_reported(self):
        with self.assertRaises(UnknownPlayerError):
            set_bet(self.ledger, "zz", 0, 10)
        with self.assertRaises(UnknownPlayerError):
            split_hand(self.ledger, "d")
        with self.assertRaises(UnknownHandError):
            toggle_double(self.ledger, "a", 1)


if __name__ == "__main__":
    unittest.main()
