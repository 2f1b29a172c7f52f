"""Unit tests for operator confirmation gates."""

import unittest

from deployment_controller.gate import AutoApproveGate, PromptGate


class PromptGateTests(unittest.TestCase):
    def test_only_yes_approves(self) -> None:
        for answer, expected in (("y", True), (" YES ", True), ("n", False), ("", False), ("sure", False)):
            with self.subTest(answer=answer):
                self.assertEqual(PromptGate(lambda _: answer).ask("Go?"), expected)

    def test_prompt_suffix(self) -> None:
        seen = []
        PromptGate(lambda prompt: seen.append(prompt) or "y").ask("Continue?")
        self.assertEqual(seen, ["Continue? (y/n): "])

    def test_closed_input_declines(self) -> None:
        def closed(_):
            raise EOFError

        self.assertFalse(PromptGate(closed).ask("Continue?"))

    def test_auto_approve(self) -> None:
        self.assertTrue(AutoApproveGate().ask("Continue?"))


if __name__ == "__main__":
    unittest.main()
