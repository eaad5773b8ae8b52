import unittest

from interfaces.telegram.callback_data import (
    encode_double,
    encode_outcome_choice,
    encode_split,
    parse_double,
    parse_outcome_choice,
    parse_split,
)


class CallbackDataTests(unittest.TestCase):
    def test_outcome_choice(self):
        data = encode_outcome_choice("3f2c", 1, "blackjack")
        self.assertEqual(data, "out:3f2c:1:blackjack")
        self.assertEqual(parse_outcome_choice(data), ("3f2c", 1, "blackjack"))

    def test_double_and_split(self):
        self.assertEqual(parse_double(encode_double("3f2c", 0)), ("3f2c", 0))
        self.assertEqual(parse_split(encode_split("3f2c")), "3f2c")

    def test_fits_telegram_callback_limit(self):
        player_id = "0b9f8a4e-6f2d-4c1b-9a57-2d7c1e0f3a11"
        self.assertLessEqual(len(encode_outcome_choice(player_id, 1, "blackjack")), 64)

    def test_malformed_payloads_are_rejected(self):
        for bad in ("out:x:0:surrender", "out:x:zero:win", "dbl:x", "spl:", "yes:1:2:3"):
            with self.assertRaises(ValueError):
                if bad.startswith("out"):
                    parse_outcome_choice(bad)
                elif bad.startswith("dbl"):
                    parse_double(bad)
                else:
                    parse_split(bad)


if __name__ == "__main__":
    unittest.main()
