import unittest
from collections import defaultdict

from domain.debts import net_debts
from domain.errors import UnbalancedLedgerError
from domain.models import Player


def _players(*balances):
    return [
        Player(id=name, name=name, balance=balance, prompt_pay_id=f"pp-{name}")
        for name, balance in balances
    ]


class NetDebtsTests(unittest.TestCase):
    def test_everyone_even_produces_no_transactions(self):
        self.assertEqual(net_debts(_players(("A", 0), ("B", 0))), [])
        self.assertEqual(net_debts([]), [])

    def test_debtors_pay_in_roster_order(self):
        transactions = net_debts(_players(("A", 20), ("B", -10), ("D", -10)))
        self.assertEqual(
            [(t.from_name, t.to_name, t.amount, t.to_prompt_pay) for t in transactions],
            [("B", "A", 10, "pp-A"), ("D", "A", 10, "pp-A")],
        )

    def test_queue_order_not_amount_order(self):
        transactions = net_debts(
            _players(("A", 5), ("B", -30), ("C", 25), ("D", 0))
        )
        self.assertEqual(
            [(t.from_name, t.to_name, t.amount) for t in transactions],
            [("B", "A", 5), ("B", "C", 25)],
        )

    def test_amounts_are_conserved(self):
        balances = [("A", 37.5), ("B", -12.25), ("C", -40), ("D", 20.75), ("E", -6)]
        transactions = net_debts(_players(*balances))

        paid = defaultdict(float)
        received = defaultdict(float)
        for t in transactions:
            self.assertGreater(t.amount, 0)
            paid[t.from_name] += t.amount
            received[t.to_name] += t.amount

        for name, balance in balances:
            if balance < 0:
                self.assertAlmostEqual(paid[name], -balance, delta=0.01)
            else:
                self.assertAlmostEqual(received[name], balance, delta=0.01)

    def test_float_residue_is_absorbed(self):
        transactions = net_debts(
            _players(("A", 0.1 + 0.2), ("B", -0.3))
        )
        self.assertEqual(len(transactions), 1)

    def test_unbalanced_ledger_is_rejected(self):
        with self.assertRaises(UnbalancedLedgerError):
            net_debts(_players(("A", 20), ("B", -10)))

    def test_nan_balance_is_rejected_instead_of_ignored(self):
        with self.assertRaises(UnbalancedLedgerError):
            net_debts(_players(("A", float("nan")), ("B", 0)))
        with self.assertRaises(UnbalancedLedgerError):
            net_debts(_players(("A", float("inf")), ("B", float("-inf"))))


if __name__ == "__main__":
    unittest.main()
