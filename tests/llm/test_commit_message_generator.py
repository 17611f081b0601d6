import unittest
from dataclasses import replace

from commit_wizard.config.schema import OpenAIConfig, PromptConfig, WizardConfig
from commit_wizard.llm.commit_message_generator import (
    CommitMessageGenerator,
    clean_message,
    extract_commit_type_from_message,
)
from commit_wizard.llm.openai_client import LLMError


class DummyClient:
    def __init__(self, responses):
        self.responses = list(responses)
        self.prompts = []
        self.kwargs = []

    def complete(self, prompt, max_tokens, temperature):
        self.prompts.append(prompt)
        self.kwargs.append({"max_tokens": max_tokens, "temperature": temperature})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_config(**kwargs):
    return replace(WizardConfig(openai=OpenAIConfig(api_key="sk-test")), **kwargs)


class TestMessageHelpers(unittest.TestCase):
    def test_extract_commit_type(self) -> None:
        cases = [
            ("feat(auth): add login", "feat"),
            ("Fix: handle null user", "fix"),
            ("docs: update README", "docs"),
            ("refactor!: drop legacy API", "refactor"),
            ("ci(github): cache pip", "ci"),
            ("update stuff", None),
            ("", None),
        ]
        for message, expected in cases:
            with self.subTest(message=message):
                self.assertEqual(extract_commit_type_from_message(message), expected)

    def test_clean_message_strips_fences(self) -> None:
        self.assertEqual(clean_message("```text\nfeat: add login\n```"), "feat: add login")
        self.assertEqual(clean_message("  fix: typo \n"), "fix: typo")


class TestCommitMessageGenerator(unittest.TestCase):
    def test_generate_success(self) -> None:
        client = DummyClient(["feat(auth): add login endpoint"])
        generator = CommitMessageGenerator(client, make_config(language="en"))
        result = generator.generate("+def login(): pass", ["src/auth.py"])
        self.assertTrue(result.success)
        self.assertEqual(result.suggestion.message, "feat(auth): add login endpoint")
        self.assertEqual(result.suggestion.type, "feat")
        self.assertEqual(result.suggestion.confidence, 0.8)
        self.assertEqual(client.kwargs[0], {"max_tokens": 150, "temperature": 0.7})

    def test_type_falls_back_to_diff_heuristics(self) -> None:
        client = DummyClient(["Update the readme"])
        generator = CommitMessageGenerator(client, make_config())
        result = generator.generate("+more words", ["README.md"])
        self.assertEqual(result.suggestion.type, "docs")

    def test_prompt_contents(self) -> None:
        config = make_config(
            language="de",
            commit_style="simple",
            prompt=PromptConfig(custom_instructions="Mention the ticket", max_diff_size=100),
        )
        generator = CommitMessageGenerator(DummyClient([]), config)
        prompt = generator.build_prompt("x" * 500, ["a.py", "b.py"])
        self.assertIn("German", prompt)
        self.assertIn("Start with an imperative verb", prompt)
        self.assertIn("Mention the ticket", prompt)
        self.assertIn("- a.py\n- b.py", prompt)
        self.assertIn("... (diff truncated)", prompt)
        self.assertNotIn("x" * 101, prompt)

    def test_generate_reports_errors(self) -> None:
        generator = CommitMessageGenerator(DummyClient([LLMError("boom")]), make_config())
        result = generator.generate("diff", ["a.py"])
        self.assertFalse(result.success)
        self.assertEqual(result.error, "boom")

    def test_retry_fails_twice_then_succeeds(self) -> None:
        sleeps = []
        client = DummyClient([LLMError("one"), LLMError("two"), "fix: handle timeout"])
        generator = CommitMessageGenerator(client, make_config(), sleep=sleeps.append)
        result = generator.generate_with_retry("diff", ["a.py"], max_attempts=3)
        self.assertTrue(result.success)
        self.assertEqual(result.suggestion.message, "fix: handle timeout")
        self.assertEqual(len(client.prompts), 3)
        self.assertEqual(sleeps, [1.0, 2.0])
        self.assertEqual(sleeps, sorted(sleeps))

    def test_retry_exhausted_reports_last_error(self) -> None:
        sleeps = []
        client = DummyClient([LLMError("first"), LLMError("second")])
        generator = CommitMessageGenerator(client, make_config(), sleep=sleeps.append)
        result = generator.generate_with_retry("diff", ["a.py"], max_attempts=2)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Failed after 2 attempts. Last error: second")
        self.assertEqual(sleeps, [1.0])

    def test_retry_defaults_to_configured_attempts(self) -> None:
        client = DummyClient([LLMError("e")] * 4)
        config = make_config(openai=OpenAIConfig(api_key="k", retries=4))
        generator = CommitMessageGenerator(client, config, sleep=lambda _: None)
        result = generator.generate_with_retry("diff", ["a.py"])
        self.assertFalse(result.success)
        self.assertEqual(len(client.prompts), 4)

    def test_backoff_delay(self) -> None:
        generator = CommitMessageGenerator(DummyClient([]), make_config(), backoff_base=0.5)
        self.assertEqual([generator.backoff_delay(i) for i in range(3)], [0.5, 1.0, 2.0])


if __name__ == "__main__":
    unittest.main()
